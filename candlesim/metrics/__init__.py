"""Indicator pipeline and candlestick pattern classification"""

from .atr import calculate_atr, calculate_true_range, true_range_series, wilder_atr_series
from .averages import ema_series, sma_series
from .calculator import IndicatorPipeline
from .candle_structure import analyze_candle_structure
from .levels import support_resistance_series
from .momentum import macd_series, rsi_series
from .patterns import classify_pattern, classify_series
from .supertrend import supertrend_series
from .volume import volume_ma_series, vwap_series

__all__ = [
    "IndicatorPipeline",
    "calculate_atr",
    "calculate_true_range",
    "true_range_series",
    "wilder_atr_series",
    "sma_series",
    "ema_series",
    "rsi_series",
    "macd_series",
    "supertrend_series",
    "vwap_series",
    "volume_ma_series",
    "support_resistance_series",
    "analyze_candle_structure",
    "classify_pattern",
    "classify_series",
]
