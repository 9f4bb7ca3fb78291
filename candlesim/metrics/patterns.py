"""
Candlestick pattern classification

Each candle gets at most one label. Rules are tested in a fixed order,
strong reversal patterns first, and the first match wins.
"""

from collections.abc import Sequence
from typing import Optional

from ..data.models import Candle, PatternLabel, PatternMatch
from .candle_structure import analyze_candle_structure

STRONG = 2
WEAK = 1


def classify_pattern(
    current: Candle,
    previous: Candle,
    two_before: Candle,
    allow_three_candle: bool = True
) -> Optional[PatternMatch]:
    """
    Classify the pattern formed by the current candle and its two predecessors

    Args:
        current: Candle being labelled
        previous: Candle immediately before
        two_before: Candle two positions before
        allow_three_candle: Whether soldiers/crows may be tested

    Returns:
        PatternMatch or None if nothing matches
    """
    cur = analyze_candle_structure(current)
    prev_range = previous.high - previous.low
    prev_body = abs(previous.close - previous.open)
    prev_bull = previous.close > previous.open
    prev_bear = previous.close < previous.open
    two_bull = two_before.close > two_before.open
    two_bear = two_before.close < two_before.open

    body = cur.body
    upper = cur.upper_shadow
    lower = cur.lower_shadow

    if (cur.is_bull and prev_bear and
            current.open < previous.close and current.close > previous.open):
        return PatternMatch(PatternLabel.BULLISH_ENGULFING, STRONG)

    if (cur.is_bear and prev_bull and
            current.open > previous.close and current.close < previous.open):
        return PatternMatch(PatternLabel.BEARISH_ENGULFING, STRONG)

    if lower >= 2 * body and upper <= body * 0.5 and cur.is_bull and cur.body_pct > 0.1:
        return PatternMatch(PatternLabel.HAMMER, WEAK)

    if upper >= 2 * body and lower <= body * 0.5 and cur.is_bear and cur.body_pct > 0.1:
        return PatternMatch(PatternLabel.SHOOTING_STAR, WEAK)

    if (two_bear and prev_body < prev_range * 0.3 and
            cur.is_bull and current.close > two_before.open):
        return PatternMatch(PatternLabel.MORNING_STAR, STRONG)

    if (two_bull and prev_body < prev_range * 0.3 and
            cur.is_bear and current.close < two_before.open):
        return PatternMatch(PatternLabel.EVENING_STAR, STRONG)

    if (prev_bear and cur.is_bull and current.open < previous.low and
            current.close > (previous.open + previous.close) / 2):
        return PatternMatch(PatternLabel.PIERCING_LINE, WEAK)

    if (prev_bull and cur.is_bear and current.open > previous.high and
            current.close < (previous.open + previous.close) / 2):
        return PatternMatch(PatternLabel.DARK_CLOUD, WEAK)

    if allow_three_candle:
        if (two_bull and prev_bull and cur.is_bull and
                current.close > previous.close > two_before.close and
                current.open > previous.open > two_before.open):
            return PatternMatch(PatternLabel.THREE_WHITE_SOLDIERS, STRONG)

        if (two_bear and prev_bear and cur.is_bear and
                current.close < previous.close < two_before.close and
                current.open < previous.open < two_before.open):
            return PatternMatch(PatternLabel.THREE_BLACK_CROWS, STRONG)

    if (cur.body_pct < 0.1 and cur.range_value > 0 and
            (lower > cur.range_value * 0.4 or upper > cur.range_value * 0.4)):
        if lower >= cur.range_value * 0.9:
            return PatternMatch(PatternLabel.DRAGONFLY_DOJI, WEAK)
        if upper >= cur.range_value * 0.9:
            return PatternMatch(PatternLabel.GRAVESTONE_DOJI, WEAK)
        return PatternMatch(PatternLabel.DOJI, WEAK)

    if previous.low == current.low and prev_bear and cur.is_bull:
        return PatternMatch(PatternLabel.TWEEZER_BOTTOM, WEAK)

    if previous.high == current.high and prev_bull and cur.is_bear:
        return PatternMatch(PatternLabel.TWEEZER_TOP, WEAK)

    if upper >= 2 * body and lower <= body * 0.5 and cur.is_bull:
        return PatternMatch(PatternLabel.INVERTED_HAMMER, WEAK)

    if lower >= 2 * body and upper <= body * 0.5 and cur.is_bear:
        return PatternMatch(PatternLabel.HANGING_MAN, WEAK)

    return None


def classify_series(candles: Sequence[Candle]) -> list[Optional[PatternMatch]]:
    """
    Label every candle in the window

    The first two candles never get a label; soldiers/crows need index >= 3.
    """
    labels: list[Optional[PatternMatch]] = [None] * len(candles)
    for i in range(2, len(candles)):
        labels[i] = classify_pattern(
            candles[i], candles[i - 1], candles[i - 2],
            allow_three_candle=i >= 3
        )
    return labels
