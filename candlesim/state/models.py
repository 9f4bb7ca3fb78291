"""
Position, trade and engine state data models.

All records are immutable. The state machine produces a new EngineState for
every accepted operation, which makes rejected operations trivially atomic.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class PositionSide(str, Enum):
    """Side of an open position or completed trade."""
    BUY = "buy"
    SELL = "sell"


class PositionState(str, Enum):
    """Position engine states."""
    FLAT = "flat"
    LONG = "long"
    SHORT = "short"


class ExitReason(str, Enum):
    """Why a trade was closed."""
    SIGNAL = "signal"
    STOP_LOSS = "stop loss"
    TAKE_PROFIT = "take profit"
    PARTIAL_TAKE_PROFIT = "partial take profit"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ExitReason":
        """Map a free-form reason string to an ExitReason, defaulting to SIGNAL."""
        if not value:
            return cls.SIGNAL
        normalized = value.strip().lower()
        for reason in cls:
            if reason.value == normalized:
                return reason
        return cls.SIGNAL


class EventKind(str, Enum):
    """Kinds of events emitted while replaying candles."""
    OPEN = "open"
    ADD = "add"
    CLOSE = "close"
    PARTIAL_CLOSE = "partial_close"
    REJECTED = "rejected"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Position:
    """Single open paper position."""
    side: PositionSide
    entry_price: float
    entry_time: datetime
    size: float
    stop_loss: float
    take_profit: float
    commission_paid: float = 0.0
    signal_confidence: int = 0

    @property
    def is_long(self) -> bool:
        return self.side is PositionSide.BUY

    def unrealized_pnl(self, price: float, quote_conversion_rate: float = 1.0) -> float:
        """Mark-to-market P&L at the given price."""
        move = price - self.entry_price if self.is_long else self.entry_price - price
        return self.size * move * quote_conversion_rate


@dataclass(frozen=True)
class Trade:
    """Completed (or partially completed) position record. Never mutated."""
    side: PositionSide
    entry_price: float
    exit_price: float
    size: float
    entry_time: datetime
    exit_time: datetime
    pnl_amount: float
    pnl_percent: float
    exit_reason: ExitReason
    commissions: float
    balance_after: float

    @property
    def duration_minutes(self) -> float:
        return (self.exit_time - self.entry_time).total_seconds() / 60.0


@dataclass(frozen=True)
class PositionEvent:
    """Something the position engine did (or declined to do) on a candle."""
    kind: EventKind
    ts: datetime
    side: Optional[PositionSide] = None
    price: Optional[float] = None
    size: float = 0.0
    balance_delta: float = 0.0
    balance_after: float = 0.0
    detail: str = ""
    trade: Optional[Trade] = None


@dataclass(frozen=True)
class EngineState:
    """Complete per-instrument paper trading state."""
    instrument_key: str
    balance: float
    position: Optional[Position] = None
    trades: tuple[Trade, ...] = field(default_factory=tuple)
    last_processed_ts: Optional[datetime] = None
    executed_signal_keys: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def fresh(cls, instrument_key: str, starting_balance: float) -> "EngineState":
        """Flat state with no history at the starting balance."""
        return cls(instrument_key=instrument_key, balance=starting_balance)

    @property
    def position_state(self) -> PositionState:
        if self.position is None:
            return PositionState.FLAT
        return PositionState.LONG if self.position.is_long else PositionState.SHORT
