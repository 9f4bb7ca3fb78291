"""
Paper trading cycle coordinator.

Orchestrates one refresh cycle per instrument:
Raw batch → Normalization → Indicators → Signals → Position replay →
Performance → Snapshot.
"""

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional, Sequence

import structlog

from .config.defaults import EngineConfig, get_default_config
from .data.models import Candle, IndicatorFrame
from .data.normalizer import normalize_batch
from .errors import DataQualityError, MalformedDataError, MetricsCalculationError, PersistenceError
from .metrics.calculator import IndicatorPipeline
from .performance.models import PerformanceSnapshot
from .performance.tracker import PerformanceTracker, compute_performance
from .persistence.csv_ledger import export_trades_csv, import_trades_csv
from .persistence.snapshot import encode_snapshot, load_state_or_default
from .persistence.store import SnapshotStore
from .signals.generator import SignalGenerator
from .signals.models import Signal
from .state.machine import PositionStateMachine
from .state.models import EngineState, PositionEvent
from .utils.time import utc_now

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CycleResult:
    """Everything produced by one refresh cycle."""
    state: EngineState
    events: list[PositionEvent] = field(default_factory=list)
    signals: list[Optional[Signal]] = field(default_factory=list)
    frames: list[IndicatorFrame] = field(default_factory=list)
    performance: PerformanceSnapshot = field(default_factory=PerformanceSnapshot)
    unrealized_pnl: Optional[float] = None


def process_cycle(
    candles: Sequence[Candle],
    config: EngineConfig,
    state: EngineState,
    now: Optional[datetime] = None
) -> CycleResult:
    """
    Run indicators, signals and the position replay over a candle window.

    Pure with respect to its inputs: the given state is not modified and a new
    state is returned.

    Args:
        candles: Time-ascending, unique candles
        config: Engine configuration for this cycle
        state: State carried in from the previous cycle
        now: Wall-clock time for the signal staleness window; None disables it

    Returns:
        CycleResult with the new state and everything derived on the way.
        ``unrealized_pnl`` marks an open position to the last close.

    Raises:
        MetricsCalculationError: If indicator computation fails
    """
    frames = IndicatorPipeline(config).compute(candles)
    signals = SignalGenerator(config, state.instrument_key).generate(candles, frames)

    machine = PositionStateMachine(config.risk, config.execution, state.instrument_key)
    replay = machine.replay(state, candles, signals, now)

    performance = compute_performance(replay.state.trades, config.risk.starting_balance)

    unrealized_pnl = None
    if replay.state.position is not None and candles:
        unrealized_pnl = replay.state.position.unrealized_pnl(
            candles[-1].close, config.risk.quote_conversion_rate
        )

    return CycleResult(
        state=replay.state,
        events=replay.events,
        signals=signals,
        frames=frames,
        performance=performance,
        unrealized_pnl=unrealized_pnl,
    )


class PaperTradingEngine:
    """
    Owns the paper account for one instrument.

    Cycles never interleave: a cycle requested while another one runs is
    skipped and logged.
    """

    def __init__(
        self,
        instrument_key: str,
        config: Optional[EngineConfig] = None,
        store: Optional[SnapshotStore] = None
    ) -> None:
        self.instrument_key = instrument_key
        self.config = config or get_default_config()
        self.store = store
        self.logger = logger.bind(instrument_key=instrument_key)
        self._lock = threading.Lock()

        self.tracker = PerformanceTracker(self.config.risk.starting_balance)
        self.state = self._restore()
        self.performance = self.tracker.update(self.state.trades)

        self.logger.info(
            "Paper trading engine initialized",
            balance=self.state.balance,
            trades=len(self.state.trades),
            position=self.state.position_state.value
        )

    def _restore(self) -> EngineState:
        raw: Optional[dict[str, Any]] = None
        if self.store is not None:
            try:
                raw = self.store.load(self.instrument_key)
            except PersistenceError as e:
                self.logger.error("Failed to load snapshot", error=str(e))
        state, _ = load_state_or_default(raw, self.instrument_key, self.config.risk)
        return state

    def update_config(self, config: EngineConfig) -> None:
        """Replace the configuration used from the next cycle on."""
        with self._lock:
            self.config = config
            self.tracker = PerformanceTracker(config.risk.starting_balance)
            self.performance = self.tracker.update(self.state.trades)

    def run_cycle(self, raw_batch: Any, now: Optional[datetime] = None) -> Optional[CycleResult]:
        """
        Run a full refresh cycle on a raw provider batch.

        Bad batches and indicator failures leave the state unchanged. Nothing
        is raised to the caller.

        Args:
            raw_batch: Raw candle rows (see ``normalize_batch``)
            now: Wall-clock time for the staleness window; defaults to now

        Returns:
            CycleResult, or None if the cycle was skipped or abandoned
        """
        if not self._lock.acquire(blocking=False):
            self.logger.warning("Cycle already running, skipping")
            return None

        try:
            try:
                batch = normalize_batch(raw_batch)
            except DataQualityError as e:
                self.logger.warning(
                    "Market data rejected, state unchanged",
                    error_type=type(e).__name__,
                    error=str(e)
                )
                return None

            try:
                result = process_cycle(
                    batch.candles,
                    self.config,
                    self.state,
                    now if now is not None else utc_now()
                )
            except MetricsCalculationError as e:
                self.logger.error(
                    "Indicator calculation failed, state unchanged",
                    metric=e.metric_name,
                    error=str(e)
                )
                return None

            self.state = result.state
            self.performance = self.tracker.update(self.state.trades)

            self.logger.info(
                "Cycle completed",
                candles=len(batch.candles),
                signals=sum(1 for s in result.signals if s is not None),
                events=len(result.events),
                balance=self.state.balance,
                position=self.state.position_state.value,
                unrealized_pnl=result.unrealized_pnl
            )

            self._persist()
            return result
        finally:
            self._lock.release()

    def _persist(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(self.instrument_key, self.snapshot())
        except PersistenceError as e:
            self.logger.error("Failed to write snapshot", error=str(e))

    def snapshot(self) -> dict[str, Any]:
        """Current state as a snapshot dictionary."""
        return encode_snapshot(self.state, self.performance)

    def export_ledger(self) -> str:
        """Trade ledger as CSV text."""
        return export_trades_csv(self.state.trades)

    def import_ledger(self, csv_text: str) -> bool:
        """
        Replace the trade ledger with one parsed from CSV.

        The balance is taken from the ledger's last row when present and no
        position is open. An open position is left as it is, together with the
        balance that already carries its entry debit.

        Returns:
            True if the ledger was imported
        """
        try:
            imported = import_trades_csv(csv_text)
        except MalformedDataError as e:
            self.logger.warning("Ledger import rejected", error=str(e))
            return False

        with self._lock:
            balance = self.state.balance
            if imported.balance is not None and self.state.position is None:
                balance = imported.balance
            elif imported.balance is not None:
                self.logger.info(
                    "Ledger balance ignored while a position is open",
                    ledger_balance=imported.balance,
                    balance=balance
                )
            self.state = replace(self.state, trades=tuple(imported.trades), balance=balance)
            self.performance = self.tracker.update(self.state.trades)
            self._persist()

        return True

    def reset(self) -> None:
        """Discard all history and start flat at the starting balance."""
        with self._lock:
            self.state = EngineState.fresh(self.instrument_key, self.config.risk.starting_balance)
            self.performance = self.tracker.update(self.state.trades)
            self._persist()
