"""
Persistence of paper trading state: snapshot JSON, CSV trade ledgers and a
sqlite snapshot store.
"""

from .csv_ledger import LEDGER_COLUMNS, LedgerImport, export_trades_csv, import_trades_csv
from .snapshot import (
    decode_snapshot,
    dumps_snapshot,
    encode_snapshot,
    load_state_or_default,
    loads_snapshot,
)
from .store import SnapshotStore

__all__ = [
    "LEDGER_COLUMNS",
    "LedgerImport",
    "export_trades_csv",
    "import_trades_csv",
    "decode_snapshot",
    "dumps_snapshot",
    "encode_snapshot",
    "load_state_or_default",
    "loads_snapshot",
    "SnapshotStore",
]
