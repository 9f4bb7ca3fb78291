"""Indicator pipeline coordinating all per-candle calculations"""

from collections.abc import Sequence
from typing import Optional

import structlog

from ..config.defaults import EngineConfig, get_default_config
from ..data.models import Candle, IndicatorFrame
from ..errors import MetricsCalculationError
from .atr import true_range_series, wilder_atr_series
from .averages import ema_series
from .levels import support_resistance_series
from .momentum import macd_series, rsi_series
from .patterns import classify_series
from .supertrend import supertrend_series
from .volume import volume_ma_series, vwap_series

logger = structlog.get_logger(__name__)


class IndicatorPipeline:
    """
    Computes one IndicatorFrame per candle

    Pure and deterministic: the same candle window always yields the same
    frames. Candles are never modified.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or get_default_config()

    def compute(self, candles: Sequence[Candle]) -> list[IndicatorFrame]:
        """
        Calculate all indicators and pattern labels for a candle window

        Args:
            candles: Time-ascending candles with unique timestamps

        Returns:
            IndicatorFrame list aligned with candles

        Raises:
            MetricsCalculationError: If an indicator computation fails
        """
        n = len(candles)
        if n == 0:
            return []

        cfg = self.config
        closes = [c.close for c in candles]
        none_series: list[Optional[float]] = [None] * n

        try:
            true_ranges = true_range_series(candles)
            atr = wilder_atr_series(true_ranges, cfg.supertrend.period)

            if cfg.supertrend.enabled:
                supertrend = supertrend_series(candles, atr, cfg.supertrend.multiplier)
            else:
                supertrend = [None] * n

            rsi = rsi_series(closes, cfg.rsi.period) if cfg.rsi.enabled else none_series

            if cfg.macd.enabled:
                macd = macd_series(
                    closes,
                    cfg.macd.fast_period,
                    cfg.macd.slow_period,
                    cfg.macd.signal_period
                )
                macd_line, macd_signal, macd_hist = macd.macd, macd.signal, macd.histogram
            else:
                macd_line = macd_signal = macd_hist = none_series

            vwap = vwap_series(candles)
            volume_ma = volume_ma_series(candles, cfg.volume.ma_period)
            emas = {p: ema_series(closes, p) for p in cfg.moving_averages.ema_periods}

            if cfg.support_resistance.enabled:
                support, resistance = support_resistance_series(candles, cfg.support_resistance.period)
            else:
                support = resistance = none_series

            patterns = classify_series(candles)
        except (ArithmeticError, ValueError, TypeError) as e:
            raise MetricsCalculationError(
                f"Indicator calculation failed: {e}",
                metric_name="indicator_pipeline",
                calculation_input={"candle_count": n}
            )

        frames = []
        for i in range(n):
            st = supertrend[i]
            match = patterns[i]
            frames.append(IndicatorFrame(
                true_range=true_ranges[i],
                atr=atr[i],
                supertrend_upper=st.upper if st else None,
                supertrend_lower=st.lower if st else None,
                supertrend_direction=st.direction if st else None,
                rsi=rsi[i],
                macd_line=macd_line[i],
                macd_signal=macd_signal[i],
                macd_histogram=macd_hist[i],
                vwap=vwap[i],
                volume_ma=volume_ma[i],
                ema={p: series[i] for p, series in emas.items()},
                support=support[i],
                resistance=resistance[i],
                pattern=match.label if match else None,
                pattern_strength=match.strength if match else 0,
            ))

        logger.debug(
            "Computed indicator frames",
            candle_count=n,
            first_ts=candles[0].ts.isoformat(),
            last_ts=candles[-1].ts.isoformat()
        )

        return frames
