"""RSI and MACD momentum oscillators"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from .averages import ema_series


def rsi_series(closes: Sequence[float], period: int = 14) -> list[Optional[float]]:
    """
    Relative Strength Index with Wilder smoothing

    The first value sits at index ``period`` and uses the simple averages of
    the first ``period`` gains and losses. RSI is 100 whenever the average loss
    is exactly zero.

    Args:
        closes: Close prices
        period: RSI period

    Returns:
        RSI series in [0, 100], None before index ``period``
    """
    n = len(closes)
    out: list[Optional[float]] = [None] * n
    if period <= 0 or n <= period:
        return out

    gains = [0.0] * n
    losses = [0.0] * n
    for i in range(1, n):
        change = closes[i] - closes[i - 1]
        gains[i] = max(change, 0.0)
        losses[i] = max(-change, 0.0)

    avg_gain = sum(gains[1:period + 1]) / period
    avg_loss = sum(losses[1:period + 1]) / period
    out[period] = _rsi_from_averages(avg_gain, avg_loss)

    for i in range(period + 1, n):
        avg_gain = ((period - 1) * avg_gain + gains[i]) / period
        avg_loss = ((period - 1) * avg_loss + losses[i]) / period
        out[i] = _rsi_from_averages(avg_gain, avg_loss)

    return out


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


@dataclass(frozen=True)
class MACDSeries:
    """Aligned MACD line, signal line and histogram."""
    macd: list[Optional[float]]
    signal: list[Optional[float]]
    histogram: list[Optional[float]]


def macd_series(
    closes: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9
) -> MACDSeries:
    """
    Moving Average Convergence Divergence

    MACD = EMA(fast) - EMA(slow), both SMA-seeded. The signal line is an
    SMA-seeded EMA of the MACD values and the histogram is MACD - signal.

    Returns:
        MACDSeries aligned with closes
    """
    n = len(closes)
    fast = ema_series(closes, fast_period)
    slow = ema_series(closes, slow_period)

    macd: list[Optional[float]] = [
        f - s if f is not None and s is not None else None
        for f, s in zip(fast, slow)
    ]

    signal: list[Optional[float]] = [None] * n
    histogram: list[Optional[float]] = [None] * n

    first = next((i for i, v in enumerate(macd) if v is not None), None)
    if first is not None:
        defined = [v for v in macd[first:] if v is not None]
        signal_tail = ema_series(defined, signal_period)
        for offset, value in enumerate(signal_tail):
            i = first + offset
            signal[i] = value
            if value is not None and macd[i] is not None:
                histogram[i] = macd[i] - value

    return MACDSeries(macd=macd, signal=signal, histogram=histogram)
