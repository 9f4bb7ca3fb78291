"""True Range and Wilder-smoothed ATR calculations"""

from collections.abc import Sequence
from typing import Optional

from ..data.models import Candle


def calculate_true_range(current: Candle, previous: Optional[Candle] = None) -> float:
    """
    Calculate True Range for a single candle

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    Args:
        current: Current candle
        previous: Previous candle (None for first candle)

    Returns:
        True Range value
    """
    if previous is None:
        # First candle case - use high-low range
        return current.high - current.low

    range_hl = current.high - current.low
    range_hc = abs(current.high - previous.close)
    range_lc = abs(current.low - previous.close)

    return max(range_hl, range_hc, range_lc)


def true_range_series(candles: Sequence[Candle]) -> list[float]:
    """True Range for every candle in the window."""
    return [
        calculate_true_range(candle, candles[i - 1] if i > 0 else None)
        for i, candle in enumerate(candles)
    ]


def wilder_atr_series(true_ranges: Sequence[float], period: int = 14) -> list[Optional[float]]:
    """
    Average True Range with Wilder smoothing

    The first ATR sits at index ``period`` and is the simple mean of
    TR[1..period] (TR[0] has no previous close). Afterwards:

        ATR[i] = (ATR[i-1] * (period - 1) + TR[i]) / period

    Args:
        true_ranges: True Range series aligned with the candles
        period: ATR period

    Returns:
        ATR series, None before index ``period``
    """
    n = len(true_ranges)
    atr: list[Optional[float]] = [None] * n
    if period <= 0 or n <= period:
        return atr

    prev = sum(true_ranges[1:period + 1]) / period
    atr[period] = prev
    for i in range(period + 1, n):
        prev = (prev * (period - 1) + true_ranges[i]) / period
        atr[i] = prev

    return atr


def calculate_atr(candles: Sequence[Candle], period: int = 14) -> Optional[float]:
    """
    Latest Wilder ATR for a candle window

    Returns:
        ATR value or None if insufficient data
    """
    series = wilder_atr_series(true_range_series(candles), period)
    return series[-1] if series else None

