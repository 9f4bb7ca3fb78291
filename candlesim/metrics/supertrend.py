"""Supertrend bands with directional hysteresis"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from ..data.models import Candle, TrendDirection


@dataclass(frozen=True)
class SupertrendPoint:
    """Supertrend state at a single candle."""
    upper: float
    lower: float
    direction: TrendDirection


def supertrend_series(
    candles: Sequence[Candle],
    atr: Sequence[Optional[float]],
    multiplier: float = 3.0
) -> list[Optional[SupertrendPoint]]:
    """
    Calculate Supertrend final bands and direction

    Basic bands are ``hl2 +/- multiplier * ATR``. While the trend is up the
    upper band can only move down; while it is down the lower band can only
    move up. Direction flips to up when close exceeds the upper band and to
    down when close falls below the lower band. The band opposite the trend is
    the candle's basic band, so while down a close must clear
    ``hl2 + multiplier * ATR`` of its own candle. Otherwise the previous
    direction holds and the band on the active side is ratcheted.

    Args:
        candles: Candle window
        atr: ATR series aligned with candles
        multiplier: Band width in ATRs

    Returns:
        Series of SupertrendPoint, None until ATR is available
    """
    points: list[Optional[SupertrendPoint]] = [None] * len(candles)
    prev: Optional[SupertrendPoint] = None

    for i, candle in enumerate(candles):
        atr_value = atr[i]
        if atr_value is None:
            prev = None
            continue

        basic_upper = candle.hl2 + multiplier * atr_value
        basic_lower = candle.hl2 - multiplier * atr_value

        if prev is None:
            direction = TrendDirection.UP if candle.close > basic_upper else TrendDirection.DOWN
            prev = SupertrendPoint(upper=basic_upper, lower=basic_lower, direction=direction)
            points[i] = prev
            continue

        if prev.direction == TrendDirection.UP:
            upper = min(basic_upper, prev.upper)
        else:
            upper = basic_upper

        if prev.direction == TrendDirection.DOWN:
            lower = max(basic_lower, prev.lower)
        else:
            lower = basic_lower

        if candle.close > upper:
            direction = TrendDirection.UP
        elif candle.close < lower:
            direction = TrendDirection.DOWN
        else:
            direction = prev.direction
            if direction == TrendDirection.UP:
                lower = max(lower, prev.lower)
            else:
                upper = min(upper, prev.upper)

        prev = SupertrendPoint(upper=upper, lower=lower, direction=direction)
        points[i] = prev

    return points
