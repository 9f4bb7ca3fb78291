"""Simple and exponential moving averages"""

from collections.abc import Sequence
from typing import Optional


def sma_series(values: Sequence[float], period: int) -> list[Optional[float]]:
    """Simple moving average, None before index ``period - 1``."""
    n = len(values)
    out: list[Optional[float]] = [None] * n
    if period <= 0 or n < period:
        return out

    window_sum = sum(values[:period])
    out[period - 1] = window_sum / period
    for i in range(period, n):
        window_sum += values[i] - values[i - period]
        out[i] = window_sum / period

    return out


def ema_series(values: Sequence[float], period: int) -> list[Optional[float]]:
    """
    Exponential moving average seeded with an SMA

    EMA[period-1] = mean(values[0..period-1])
    EMA[i] = (values[i] - EMA[i-1]) * k + EMA[i-1],  k = 2 / (period + 1)

    Returns:
        EMA series, None before index ``period - 1``
    """
    n = len(values)
    out: list[Optional[float]] = [None] * n
    if period <= 0 or n < period:
        return out

    k = 2.0 / (period + 1)
    prev = sum(values[:period]) / period
    out[period - 1] = prev
    for i in range(period, n):
        prev = (values[i] - prev) * k + prev
        out[i] = prev

    return out
