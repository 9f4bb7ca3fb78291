"""Tests for weighted signal scoring."""

from dataclasses import replace

import pytest

from candlesim.config.defaults import SignalParams, get_default_config
from candlesim.data.models import IndicatorFrame, PatternLabel, TrendDirection
from candlesim.metrics.calculator import IndicatorPipeline
from candlesim.signals.generator import SignalGenerator
from candlesim.signals.models import Signal, SignalDirection

LAST = 29    # first_signal_index with default config


def _window(candle_factory, frame, prev_frame=None, volume=1000.0):
    """30 identical candles whose last frame is the one under test."""
    candles = [candle_factory(i, 100, 101, 99, 100, volume=volume) for i in range(LAST + 1)]
    frames = [IndicatorFrame() for _ in range(LAST + 1)]
    if prev_frame is not None:
        frames[LAST - 1] = prev_frame
    frames[LAST] = frame
    return candles, frames


class TestWarmUp:
    """Test warm-up gating."""

    def test_min_period_defaults(self):
        """Test min_period is the longest indicator warm-up."""
        generator = SignalGenerator()
        assert generator.min_period == 26
        assert generator.first_signal_index == 29

    def test_no_signal_before_first_index(self, candle_factory):
        """Test candles inside the warm-up never get a signal."""
        frame = IndicatorFrame(atr=0.5, supertrend_direction=TrendDirection.UP, vwap=99.0)
        candles = [candle_factory(i, 100, 101, 99, 100) for i in range(35)]
        frames = [frame] * 35

        signals = SignalGenerator().generate(candles, frames)

        assert signals[:LAST] == [None] * LAST
        assert all(s is not None for s in signals[LAST:])

    def test_misaligned_input(self, candle_factory):
        """Test candles and frames must align."""
        with pytest.raises(ValueError):
            SignalGenerator().generate([candle_factory(0, 100, 101, 99, 100)], [])


class TestBuySignals:
    """Test bullish scoring and firing."""

    def test_strong_buy(self, candle_factory):
        """Test supertrend + MACD + VWAP scores 6 and fires strong."""
        frame = IndicatorFrame(
            atr=0.5,
            supertrend_direction=TrendDirection.UP,
            macd_line=1.0,
            macd_signal=0.5,
            vwap=99.0,
        )
        candles, frames = _window(candle_factory, frame)

        decision = SignalGenerator().evaluate_candle(LAST, candles, frames)

        assert decision.bullish_score == 6
        assert decision.reason == "weighted"
        signal = decision.signal
        assert signal.direction == SignalDirection.STRONG_BUY
        assert signal.confidence == 6
        assert signal.reference_price == 101
        assert signal.source_tag == "weighted-6"
        assert signal.ts == candles[LAST].ts

    def test_weak_buy(self, candle_factory):
        """Test a score between the minimum and the strong threshold is weak."""
        frame = IndicatorFrame(atr=0.5, supertrend_direction=TrendDirection.UP, vwap=99.0)
        candles, frames = _window(candle_factory, frame)

        signal = SignalGenerator().evaluate_candle(LAST, candles, frames).signal

        assert signal.direction == SignalDirection.WEAK_BUY
        assert signal.confidence == 5

    def test_ema_cross_is_core(self, candle_factory):
        """Test an EMA cross can fire without supertrend agreement."""
        prev = IndicatorFrame(ema={20: 99.0, 50: 100.0})
        frame = IndicatorFrame(
            atr=0.5,
            ema={20: 100.5, 50: 100.0},
            macd_line=1.0,
            macd_signal=0.5,
            vwap=99.0,
        )
        candles, frames = _window(candle_factory, frame, prev_frame=prev)

        decision = SignalGenerator().evaluate_candle(LAST, candles, frames)

        assert decision.bullish.ema_cross
        assert decision.bullish.ema_level
        assert decision.bullish_score == 4
        assert decision.signal.direction == SignalDirection.WEAK_BUY

    def test_no_core_no_signal(self, candle_factory):
        """Test secondary confirmations alone never fire."""
        frame = IndicatorFrame(
            atr=0.5,
            macd_line=1.0,
            macd_signal=0.5,
            rsi=20.0,
            vwap=99.0,
            pattern=PatternLabel.HAMMER,
        )
        candles, frames = _window(candle_factory, frame, volume=5000.0)
        frames[LAST] = replace(frame, volume_ma=1000.0)

        decision = SignalGenerator().evaluate_candle(LAST, candles, frames)

        assert decision.bullish_score == 5
        assert decision.signal is None

    def test_buy_evaluated_first(self, candle_factory):
        """Test buy wins when both sides qualify."""
        prev = IndicatorFrame(ema={20: 99.0, 50: 100.0})
        frame = IndicatorFrame(
            atr=0.5,
            supertrend_direction=TrendDirection.DOWN,
            ema={20: 100.5, 50: 100.0},
            macd_line=1.0,
            macd_signal=0.5,
            vwap=99.0,
        )
        candles, frames = _window(candle_factory, frame, prev_frame=prev)

        decision = SignalGenerator().evaluate_candle(LAST, candles, frames)

        assert decision.bearish_score == 4
        assert decision.signal.direction.is_buy


class TestSellSignals:
    """Test bearish scoring."""

    def test_weak_sell_uses_low(self, candle_factory):
        """Test sell reference price is the candle low."""
        frame = IndicatorFrame(atr=0.5, supertrend_direction=TrendDirection.DOWN, rsi=75.0)
        candles, frames = _window(candle_factory, frame)

        signal = SignalGenerator().evaluate_candle(LAST, candles, frames).signal

        assert signal.direction == SignalDirection.WEAK_SELL
        assert signal.reference_price == 99
        assert signal.confidence == 5

    def test_strong_sell(self, candle_factory):
        """Test bearish confirmations add up to a strong sell."""
        frame = IndicatorFrame(
            atr=0.5,
            supertrend_direction=TrendDirection.DOWN,
            macd_line=-1.0,
            macd_signal=0.0,
            vwap=101.0,
            pattern=PatternLabel.BEARISH_ENGULFING,
        )
        candles, frames = _window(candle_factory, frame)

        signal = SignalGenerator().evaluate_candle(LAST, candles, frames).signal

        assert signal.direction == SignalDirection.STRONG_SELL
        assert signal.confidence == 7


class TestVolatilityGate:
    """Test ATR ratio floor and override path."""

    def test_override_path(self, candle_factory):
        """Test supertrend alone fires at half the volatility floor."""
        frame = IndicatorFrame(atr=0.08, supertrend_direction=TrendDirection.UP)
        candles, frames = _window(candle_factory, frame)

        decision = SignalGenerator().evaluate_candle(LAST, candles, frames)

        assert decision.atr_ratio == pytest.approx(0.0008)
        assert decision.reason == "supertrend_override"
        assert decision.signal.direction == SignalDirection.WEAK_BUY

    def test_override_disabled(self, candle_factory):
        """Test the override path can be switched off."""
        config = replace(get_default_config(), signals=SignalParams(override_enabled=False))
        frame = IndicatorFrame(atr=0.08, supertrend_direction=TrendDirection.UP)
        candles, frames = _window(candle_factory, frame)

        assert SignalGenerator(config).evaluate_candle(LAST, candles, frames).signal is None

    def test_too_quiet(self, candle_factory):
        """Test nothing fires below half the floor."""
        frame = IndicatorFrame(atr=0.03, supertrend_direction=TrendDirection.UP, vwap=99.0)
        candles, frames = _window(candle_factory, frame)

        assert SignalGenerator().evaluate_candle(LAST, candles, frames).signal is None

    def test_missing_atr(self, candle_factory):
        """Test a missing ATR gives a zero ratio."""
        frame = IndicatorFrame(supertrend_direction=TrendDirection.UP, vwap=99.0)
        candles, frames = _window(candle_factory, frame)

        decision = SignalGenerator().evaluate_candle(LAST, candles, frames)

        assert decision.atr_ratio == 0.0
        assert decision.signal is None


class TestVolumeSpike:
    """Test the direction-neutral volume confirmation."""

    def test_spike_adds_to_both_sides(self, candle_factory):
        """Test volume above 1.4x its average adds one point to each side."""
        frame = IndicatorFrame(atr=0.5, volume_ma=1000.0)
        candles, frames = _window(candle_factory, frame, volume=1500.0)

        decision = SignalGenerator().evaluate_candle(LAST, candles, frames)

        assert decision.volume_spike
        assert decision.bullish_score == 1
        assert decision.bearish_score == 1

    def test_no_spike_at_threshold(self, candle_factory):
        """Test volume exactly at the multiplier is not a spike."""
        frame = IndicatorFrame(atr=0.5, volume_ma=1000.0)
        candles, frames = _window(candle_factory, frame, volume=1400.0)

        assert not SignalGenerator().evaluate_candle(LAST, candles, frames).volume_spike


class TestSignalModel:
    """Test the Signal contract."""

    def test_key(self, base_time):
        signal = Signal(SignalDirection.WEAK_SELL, 4, 99.0, "weighted-4", base_time)
        assert signal.key == f"{base_time.isoformat()}_weak-sell"

    def test_direction_sides(self):
        assert SignalDirection.STRONG_BUY.is_buy
        assert SignalDirection.WEAK_SELL.is_sell
        assert not SignalDirection.NONE.is_buy
        assert not SignalDirection.NONE.is_sell


class TestPipelineIntegration:
    """Test signals over real indicator frames."""

    def test_signals_reference_candle_range(self, random_walk_candles):
        """Test every signal price lies on its candle and confidence is positive."""
        frames = IndicatorPipeline().compute(random_walk_candles)
        signals = SignalGenerator().generate(random_walk_candles, frames)

        for candle, signal in zip(random_walk_candles, signals):
            if signal is None:
                continue
            assert signal.reference_price in (candle.high, candle.low)
            assert signal.confidence > 0
            assert signal.ts == candle.ts

    def test_breakout_produces_buy(self, breakout_candles):
        """Test the supertrend flip on a breakout candle fires a buy."""
        frames = IndicatorPipeline().compute(breakout_candles)
        generator = SignalGenerator()
        signals = generator.generate(breakout_candles, frames)

        assert frames[-1].supertrend_direction == TrendDirection.UP
        assert signals[-1] is not None
        assert signals[-1].direction.is_buy
        assert signals[-1].reference_price == 120.0
        assert not any(s.direction.is_buy for s in signals[generator.first_signal_index:-1] if s)

    def test_grinding_rally_keeps_bearish_supertrend(self, uptrend_candles):
        """Test a rally that never clears the basic upper band scores no supertrend buys."""
        frames = IndicatorPipeline().compute(uptrend_candles)
        generator = SignalGenerator()

        for i in range(generator.first_signal_index, len(uptrend_candles)):
            decision = generator.evaluate_candle(i, uptrend_candles, frames)
            assert not decision.bullish.supertrend
            assert decision.bearish.supertrend
