"""
CSV trade ledger import and export.

Columns, in order::

    Type,EntryPrice,ExitPrice,PositionSize,P/LAmount,P/LPercent,
    EntryTime,ExitTime,DurationMins,ExitReason,Commissions,VirtualBalanceAfter

Prices and sizes are written with 8 decimals, money columns with 2 and the
duration in whole minutes. Import locates columns by header name.
"""

import csv
import io
from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog

from ..errors import MalformedDataError
from ..state.models import ExitReason, PositionSide, Trade
from ..utils.time import format_iso, to_utc_datetime

logger = structlog.get_logger(__name__)

LEDGER_COLUMNS = [
    "Type", "EntryPrice", "ExitPrice", "PositionSize", "P/LAmount",
    "P/LPercent", "EntryTime", "ExitTime", "DurationMins",
    "ExitReason", "Commissions", "VirtualBalanceAfter",
]

_REQUIRED_COLUMNS = ("Type", "EntryPrice", "ExitPrice", "PositionSize",
                     "P/LAmount", "EntryTime", "ExitTime")


@dataclass(frozen=True)
class LedgerImport:
    """Trades parsed from a CSV ledger plus the balance recorded on its last row."""
    trades: list[Trade] = field(default_factory=list)
    balance: Optional[float] = None
    skipped_rows: int = 0


def export_trades_csv(trades: Sequence[Trade]) -> str:
    """
    Render trades as CSV text, ordered by entry time.

    Args:
        trades: Completed trades

    Returns:
        CSV text with a header row
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(LEDGER_COLUMNS)

    for trade in sorted(trades, key=lambda t: t.entry_time):
        writer.writerow([
            trade.side.value.upper(),
            f"{trade.entry_price:.8f}",
            f"{trade.exit_price:.8f}",
            f"{trade.size:.8f}",
            f"{trade.pnl_amount:.2f}",
            f"{trade.pnl_percent:.2f}",
            format_iso(trade.entry_time),
            format_iso(trade.exit_time),
            f"{trade.duration_minutes:.0f}",
            trade.exit_reason.value,
            f"{trade.commissions:.2f}",
            f"{trade.balance_after:.2f}",
        ])

    return buffer.getvalue()


def _parse_row(row: list[str], index: dict[str, int]) -> Trade:
    def cell(name: str) -> Optional[str]:
        position = index.get(name)
        if position is None or position >= len(row):
            return None
        value = row[position].strip()
        return value or None

    def number(name: str, default: Optional[float] = None) -> float:
        value = cell(name)
        if value is None:
            if default is None:
                raise ValueError(f"missing {name}")
            return default
        return float(value)

    side_text = cell("Type")
    if side_text is None:
        raise ValueError("missing Type")
    entry_text = cell("EntryTime")
    exit_text = cell("ExitTime")
    if entry_text is None or exit_text is None:
        raise ValueError("missing EntryTime or ExitTime")

    entry_time = to_utc_datetime(entry_text)
    exit_time = to_utc_datetime(exit_text)
    if exit_time < entry_time:
        raise ValueError("ExitTime precedes EntryTime")

    return Trade(
        side=PositionSide(side_text.lower()),
        entry_price=number("EntryPrice"),
        exit_price=number("ExitPrice"),
        size=number("PositionSize"),
        entry_time=entry_time,
        exit_time=exit_time,
        pnl_amount=number("P/LAmount"),
        pnl_percent=number("P/LPercent", 0.0),
        exit_reason=ExitReason.parse(cell("ExitReason")),
        commissions=number("Commissions", 0.0),
        balance_after=number("VirtualBalanceAfter", 0.0),
    )


def import_trades_csv(text: str) -> LedgerImport:
    """
    Parse a CSV trade ledger.

    Blank lines are skipped. Rows with fewer fields than the header, or with
    unparsable values, are logged and skipped. Missing ``ExitReason`` defaults
    to ``signal`` and missing ``Commissions`` to 0.

    Args:
        text: CSV text including the header row

    Returns:
        LedgerImport with the parsed trades and the last row's balance

    Raises:
        MalformedDataError: If the header is missing or lacks required columns
    """
    rows = [r for r in csv.reader(io.StringIO(text.strip())) if any(c.strip() for c in r)]
    if not rows:
        raise MalformedDataError("CSV ledger is empty", expected_format="csv")

    header = [h.strip() for h in rows[0]]
    missing = [c for c in _REQUIRED_COLUMNS if c not in header]
    if missing:
        raise MalformedDataError(
            f"CSV ledger missing columns: {', '.join(missing)}",
            raw_data=",".join(header)[:100],
            expected_format="csv"
        )

    index = {name: i for i, name in enumerate(header)}
    trades: list[Trade] = []
    skipped = 0
    last_balance_text: Optional[str] = None

    for line_number, row in enumerate(rows[1:], start=2):
        if len(row) < len(header):
            skipped += 1
            logger.warning(
                "Skipping short ledger row",
                line=line_number,
                fields=len(row),
                expected=len(header)
            )
            continue
        try:
            trades.append(_parse_row(row, index))
        except ValueError as e:
            skipped += 1
            logger.warning("Skipping invalid ledger row", line=line_number, error=str(e))
            continue
        if "VirtualBalanceAfter" in index:
            last_balance_text = row[index["VirtualBalanceAfter"]].strip() or None

    balance: Optional[float] = None
    if trades and last_balance_text is not None:
        try:
            balance = float(last_balance_text)
        except ValueError:
            logger.warning("Unparsable ledger balance", value=last_balance_text)

    logger.info("Ledger imported", trades=len(trades), skipped_rows=skipped, balance=balance)

    return LedgerImport(trades=trades, balance=balance, skipped_rows=skipped)
