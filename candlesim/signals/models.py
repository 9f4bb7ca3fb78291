"""Signal data contract shared by the signal and position engines."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SignalDirection(str, Enum):
    """Directional signal labels."""
    NONE = "none"
    WEAK_BUY = "weak-buy"
    STRONG_BUY = "strong-buy"
    WEAK_SELL = "weak-sell"
    STRONG_SELL = "strong-sell"

    @property
    def is_buy(self) -> bool:
        return self in (SignalDirection.WEAK_BUY, SignalDirection.STRONG_BUY)

    @property
    def is_sell(self) -> bool:
        return self in (SignalDirection.WEAK_SELL, SignalDirection.STRONG_SELL)


@dataclass(frozen=True)
class Signal:
    """Immutable trading signal produced for a single candle."""
    direction: SignalDirection
    confidence: int             # Raw weighted score
    reference_price: float      # Candle high for buys, low for sells
    source_tag: str
    ts: datetime                # Candle timestamp

    @property
    def key(self) -> str:
        """Identity used to avoid executing the same signal twice."""
        return f"{self.ts.isoformat()}_{self.direction.value}"
