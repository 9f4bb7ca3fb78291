"""Rolling support and resistance levels"""

from collections import deque
from collections.abc import Sequence
from typing import Optional

from ..data.models import Candle


def support_resistance_series(
    candles: Sequence[Candle],
    period: int = 20
) -> tuple[list[Optional[float]], list[Optional[float]]]:
    """
    Rolling min(low) and max(high) over the trailing ``period`` candles

    Uses monotonic deques so the whole window is processed in one pass.

    Returns:
        (support, resistance) series, None before index ``period - 1``
    """
    n = len(candles)
    support: list[Optional[float]] = [None] * n
    resistance: list[Optional[float]] = [None] * n
    if period <= 0:
        return support, resistance

    lows: deque[int] = deque()
    highs: deque[int] = deque()

    for i, candle in enumerate(candles):
        while lows and candles[lows[-1]].low >= candle.low:
            lows.pop()
        lows.append(i)
        while highs and candles[highs[-1]].high <= candle.high:
            highs.pop()
        highs.append(i)

        start = i - period + 1
        if lows[0] < start:
            lows.popleft()
        if highs[0] < start:
            highs.popleft()

        if start >= 0:
            support[i] = candles[lows[0]].low
            resistance[i] = candles[highs[0]].high

    return support, resistance
