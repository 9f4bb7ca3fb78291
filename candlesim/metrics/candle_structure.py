"""Candle structure analysis: body, shadows and their ratios"""

from dataclasses import dataclass

from ..data.models import Candle


@dataclass(frozen=True)
class CandleStructure:
    """Candle structure analysis results"""
    range_value: float
    body: float
    upper_shadow: float
    lower_shadow: float
    body_pct: float
    upper_pct: float
    lower_pct: float
    is_bull: bool
    is_bear: bool


def analyze_candle_structure(candle: Candle) -> CandleStructure:
    """
    Analyze candle structure components

    Args:
        candle: Candle to analyze

    Returns:
        CandleStructure with all analysis components
    """
    range_value = candle.high - candle.low
    body = abs(candle.close - candle.open)
    upper_shadow = candle.high - max(candle.open, candle.close)
    lower_shadow = min(candle.open, candle.close) - candle.low

    # Calculate percentages (handle zero range)
    if range_value > 0:
        body_pct = body / range_value
        upper_pct = upper_shadow / range_value
        lower_pct = lower_shadow / range_value
    else:
        body_pct = 0.0
        upper_pct = 0.0
        lower_pct = 0.0

    return CandleStructure(
        range_value=range_value,
        body=body,
        upper_shadow=upper_shadow,
        lower_shadow=lower_shadow,
        body_pct=body_pct,
        upper_pct=upper_pct,
        lower_pct=lower_pct,
        is_bull=candle.close > candle.open,
        is_bear=candle.close < candle.open,
    )
