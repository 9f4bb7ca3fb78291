"""
Weighted multi-indicator signal generator.

Each candle past the warm-up window is scored on both sides:

    supertrend agreement     weight 4
    EMA20/EMA50 cross        weight 2
    MACD vs signal           weight 1
    RSI extreme              weight 1
    close vs VWAP            weight 1
    reversal pattern         weight 1
    volume spike             weight 1 on both sides

A side fires when its score reaches the minimum, it has a core confirmation
(supertrend or EMA cross) and volatility clears the ATR/close floor. The
override path fires on supertrend agreement alone with a lower score and half
the volatility floor. Buy is evaluated before sell.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from ..config.defaults import EngineConfig, get_default_config
from ..data.models import BEARISH_PATTERNS, BULLISH_PATTERNS, Candle, IndicatorFrame, TrendDirection
from ..logging.config import get_signal_logger, log_signal_decision
from ..metrics.volume import calculate_rvol
from .models import Signal, SignalDirection

signal_logger = get_signal_logger(__name__)


@dataclass(frozen=True)
class Confirmations:
    """Boolean confirmations for one side of the market."""
    supertrend: bool = False
    ema_level: bool = False
    ema_cross: bool = False
    macd: bool = False
    rsi: bool = False
    vwap: bool = False
    pattern: bool = False


@dataclass(frozen=True)
class SignalDecision:
    """Full scoring breakdown for a candle."""
    bullish: Confirmations
    bearish: Confirmations
    volume_spike: bool
    bullish_score: int
    bearish_score: int
    atr_ratio: float
    signal: Optional[Signal] = None
    reason: Optional[str] = None


def _both(a: Optional[float], b: Optional[float]) -> bool:
    return a is not None and b is not None


class SignalGenerator:
    """Produces at most one Signal per candle from indicator frames."""

    def __init__(self, config: Optional[EngineConfig] = None, instrument_key: str = ""):
        self.config = config or get_default_config()
        self.instrument_key = instrument_key

    @property
    def min_period(self) -> int:
        """Warm-up length before any confirmation is trusted."""
        cfg = self.config
        macd_warmup = max(cfg.macd.fast_period, cfg.macd.slow_period, cfg.macd.signal_period)
        return max(cfg.rsi.period, macd_warmup, cfg.supertrend.period)

    @property
    def first_signal_index(self) -> int:
        return self.min_period + self.config.signals.settle_buffer

    def generate(
        self,
        candles: Sequence[Candle],
        frames: Sequence[IndicatorFrame]
    ) -> list[Optional[Signal]]:
        """
        Generate the signal series for a window

        Args:
            candles: Time-ascending candles
            frames: IndicatorFrame list aligned with candles

        Returns:
            Signal or None per candle
        """
        if len(candles) != len(frames):
            raise ValueError("candles and frames must be aligned")

        signals: list[Optional[Signal]] = [None] * len(candles)
        for i in range(self.first_signal_index, len(candles)):
            signals[i] = self.evaluate_candle(i, candles, frames).signal
        return signals

    def evaluate_candle(
        self,
        index: int,
        candles: Sequence[Candle],
        frames: Sequence[IndicatorFrame]
    ) -> SignalDecision:
        """Score a single candle and decide whether a signal fires."""
        params = self.config.signals
        rsi_cfg = self.config.rsi
        candle = candles[index]
        frame = frames[index]
        prev = frames[index - 1] if index > 0 else None

        rsi = frame.rsi
        macd, macd_signal = frame.macd_line, frame.macd_signal
        ema20, ema50 = frame.ema20, frame.ema50
        prev_ema20 = prev.ema20 if prev else None
        prev_ema50 = prev.ema50 if prev else None

        emas_ready = _both(ema20, ema50)
        prev_emas_ready = _both(prev_ema20, prev_ema50)

        bullish = Confirmations(
            supertrend=frame.supertrend_direction == TrendDirection.UP,
            ema_level=emas_ready and ema20 > ema50,
            ema_cross=emas_ready and prev_emas_ready and ema20 > ema50 and prev_ema20 <= prev_ema50,
            macd=_both(macd, macd_signal) and macd > macd_signal,
            rsi=rsi is not None and rsi < rsi_cfg.oversold,
            vwap=frame.vwap is not None and candle.close > frame.vwap,
            pattern=frame.pattern in BULLISH_PATTERNS,
        )
        bearish = Confirmations(
            supertrend=frame.supertrend_direction == TrendDirection.DOWN,
            ema_level=emas_ready and ema20 < ema50,
            ema_cross=emas_ready and prev_emas_ready and ema20 < ema50 and prev_ema20 >= prev_ema50,
            macd=_both(macd, macd_signal) and macd < macd_signal,
            rsi=rsi is not None and rsi > rsi_cfg.overbought,
            vwap=frame.vwap is not None and candle.close < frame.vwap,
            pattern=frame.pattern in BEARISH_PATTERNS,
        )

        rvol = calculate_rvol(candle.volume, frame.volume_ma)
        volume_spike = rvol is not None and rvol > params.volume_spike_multiplier

        bullish_score = self._score(bullish, volume_spike)
        bearish_score = self._score(bearish, volume_spike)

        atr_ratio = frame.atr / candle.close if frame.atr and candle.close else 0.0

        decision_kwargs = dict(
            bullish=bullish,
            bearish=bearish,
            volume_spike=volume_spike,
            bullish_score=bullish_score,
            bearish_score=bearish_score,
            atr_ratio=atr_ratio,
        )

        for side, conf, score, price in (
            ("buy", bullish, bullish_score, candle.high),
            ("sell", bearish, bearish_score, candle.low),
        ):
            reason = self._firing_path(conf, score, atr_ratio)
            if reason is None:
                continue

            strong = score >= params.min_weighted_score + params.strong_margin
            if side == "buy":
                direction = SignalDirection.STRONG_BUY if strong else SignalDirection.WEAK_BUY
            else:
                direction = SignalDirection.STRONG_SELL if strong else SignalDirection.WEAK_SELL

            signal = Signal(
                direction=direction,
                confidence=score,
                reference_price=price,
                source_tag=f"weighted-{score}",
                ts=candle.ts,
            )
            log_signal_decision(
                signal_logger,
                instrument_key=self.instrument_key,
                direction=direction.value,
                bullish_score=bullish_score,
                bearish_score=bearish_score,
                reason=reason,
                context={
                    "ts": candle.ts.isoformat(),
                    "reference_price": price,
                    "atr_ratio": atr_ratio,
                    "volume_spike": volume_spike,
                }
            )
            return SignalDecision(signal=signal, reason=reason, **decision_kwargs)

        return SignalDecision(**decision_kwargs)

    def _score(self, conf: Confirmations, volume_spike: bool) -> int:
        params = self.config.signals
        score = 0
        if conf.supertrend:
            score += params.supertrend_weight
        if conf.ema_cross:
            score += params.ema_cross_weight
        if conf.macd:
            score += params.macd_weight
        if conf.rsi:
            score += params.rsi_weight
        if conf.vwap:
            score += params.vwap_weight
        if conf.pattern:
            score += params.pattern_weight
        if volume_spike:
            score += params.volume_weight
        return score

    def _firing_path(self, conf: Confirmations, score: int, atr_ratio: float) -> Optional[str]:
        """Return the name of the path that fires for this side, if any."""
        params = self.config.signals
        has_core = conf.supertrend or conf.ema_cross

        if score >= params.min_weighted_score and has_core and atr_ratio >= params.min_atr_ratio:
            return "weighted"

        if (params.override_enabled and conf.supertrend and
                score >= params.override_min_score and
                atr_ratio >= params.min_atr_ratio * params.override_atr_factor):
            return "supertrend_override"

        return None
