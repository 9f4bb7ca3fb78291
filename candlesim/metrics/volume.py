"""Volume-weighted average price and volume moving average"""

from collections.abc import Sequence
from typing import Optional

from ..data.models import Candle
from .averages import sma_series


def vwap_series(candles: Sequence[Candle]) -> list[float]:
    """
    Window VWAP

    Cumulative (typical price * volume) / cumulative volume from the start of
    the supplied window. It resets with every batch, so it is not a session VWAP.

    Returns:
        VWAP per candle, 0.0 while cumulative volume is zero
    """
    out: list[float] = []
    cumulative_pv = 0.0
    cumulative_volume = 0.0

    for candle in candles:
        cumulative_pv += candle.typical_price * candle.volume
        cumulative_volume += candle.volume
        out.append(cumulative_pv / cumulative_volume if cumulative_volume > 0 else 0.0)

    return out


def volume_ma_series(candles: Sequence[Candle], period: int = 20) -> list[Optional[float]]:
    """Simple moving average of volume."""
    return sma_series([c.volume for c in candles], period)


def calculate_rvol(current_volume: float, volume_ma: Optional[float]) -> Optional[float]:
    """
    Relative volume against its moving average

    Returns:
        RVOL value or None if the average is unavailable or zero
    """
    if volume_ma is None or volume_ma <= 0:
        return None
    return current_volume / volume_ma
