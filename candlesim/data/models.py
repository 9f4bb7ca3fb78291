"""
Canonical data models for normalized market data and derived indicators.

Candles are immutable once normalized. Derived indicator values live in a
separate IndicatorFrame per candle, owned by the indicator pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Candle:
    """Normalized OHLCV candle with a UTC timestamp."""
    ts: datetime        # UTC candle open time
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def hl2(self) -> float:
        return (self.high + self.low) / 2.0

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3.0


class TrendDirection(str, Enum):
    """Supertrend direction."""
    UP = "up"
    DOWN = "down"


class PatternLabel(str, Enum):
    """Candlestick pattern labels."""
    BULLISH_ENGULFING = "bullish-engulfing"
    BEARISH_ENGULFING = "bearish-engulfing"
    HAMMER = "hammer"
    SHOOTING_STAR = "shooting-star"
    MORNING_STAR = "morning-star"
    EVENING_STAR = "evening-star"
    PIERCING_LINE = "piercing-line"
    DARK_CLOUD = "dark-cloud"
    THREE_WHITE_SOLDIERS = "three-white-soldiers"
    THREE_BLACK_CROWS = "three-black-crows"
    DOJI = "doji"
    DRAGONFLY_DOJI = "dragonfly-doji"
    GRAVESTONE_DOJI = "gravestone-doji"
    TWEEZER_BOTTOM = "tweezer-bottom"
    TWEEZER_TOP = "tweezer-top"
    INVERTED_HAMMER = "inverted-hammer"
    HANGING_MAN = "hanging-man"


BULLISH_PATTERNS = frozenset({
    PatternLabel.HAMMER,
    PatternLabel.BULLISH_ENGULFING,
    PatternLabel.MORNING_STAR,
    PatternLabel.PIERCING_LINE,
})

BEARISH_PATTERNS = frozenset({
    PatternLabel.SHOOTING_STAR,
    PatternLabel.BEARISH_ENGULFING,
    PatternLabel.EVENING_STAR,
    PatternLabel.DARK_CLOUD,
})


@dataclass(frozen=True)
class PatternMatch:
    """Classified candlestick pattern with strength 1 (weak) or 2 (strong)."""
    label: PatternLabel
    strength: int


@dataclass(frozen=True)
class IndicatorFrame:
    """Indicator values derived for a single candle.

    None means the indicator is not warmed up (or disabled) at this index.
    """
    true_range: Optional[float] = None
    atr: Optional[float] = None
    supertrend_upper: Optional[float] = None
    supertrend_lower: Optional[float] = None
    supertrend_direction: Optional[TrendDirection] = None
    rsi: Optional[float] = None
    macd_line: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_histogram: Optional[float] = None
    vwap: Optional[float] = None
    volume_ma: Optional[float] = None
    ema: dict[int, Optional[float]] = field(default_factory=dict)
    support: Optional[float] = None
    resistance: Optional[float] = None
    pattern: Optional[PatternLabel] = None
    pattern_strength: int = 0

    @property
    def ema20(self) -> Optional[float]:
        return self.ema.get(20)

    @property
    def ema50(self) -> Optional[float]:
        return self.ema.get(50)
