"""Tests for RSI and MACD"""

import pytest

from candlesim.metrics.momentum import macd_series, rsi_series


class TestRSI:
    """Test Wilder RSI"""

    def test_warm_up(self):
        """Test RSI is None before index period"""
        closes = [float(i) for i in range(20)]
        series = rsi_series(closes, period=14)
        assert series[:14] == [None] * 14
        assert series[14] is not None

    def test_only_gains_is_100(self):
        """Test RSI is 100 when there are no losses"""
        closes = [100.0 + i for i in range(30)]
        series = rsi_series(closes, period=14)
        assert all(v == 100.0 for v in series[14:])

    def test_only_losses_is_0(self):
        """Test RSI is 0 when there are no gains"""
        closes = [100.0 - i for i in range(30)]
        series = rsi_series(closes, period=14)
        assert all(v == pytest.approx(0.0) for v in series[14:])

    def test_single_loss_drops_below_100(self):
        """Test any loss in the window gives RSI below 100"""
        closes = [100.0 + i for i in range(14)] + [110.0]
        series = rsi_series(closes, period=14)
        assert series[14] < 100.0

    def test_flat_series_is_100(self):
        """Test zero average loss gives exactly 100 even without gains"""
        series = rsi_series([50.0] * 20, period=14)
        assert series[14] == 100.0

    def test_bounded(self, random_walk_candles):
        """Test RSI always lies in [0, 100]"""
        series = rsi_series([c.close for c in random_walk_candles], period=14)
        values = [v for v in series if v is not None]
        assert values
        assert all(0.0 <= v <= 100.0 for v in values)

    def test_known_value(self):
        """Test RSI from simple averages at the seed index"""
        closes = [10.0, 11.0, 10.5, 11.5]    # gains 1, 0, 1 / losses 0, 0.5, 0
        series = rsi_series(closes, period=3)
        avg_gain, avg_loss = 2.0 / 3, 0.5 / 3
        assert series[3] == pytest.approx(100 - 100 / (1 + avg_gain / avg_loss))


class TestMACD:
    """Test MACD line, signal and histogram"""

    def test_definition_indices(self):
        """Test MACD starts at slow-1 and the signal signal-1 values later"""
        closes = [100.0 + (i % 3) for i in range(12)]
        result = macd_series(closes, fast_period=3, slow_period=5, signal_period=2)

        assert result.macd[:4] == [None] * 4
        assert result.macd[4] is not None
        assert result.signal[4] is None
        assert result.signal[5] is not None
        assert result.histogram[5] == pytest.approx(result.macd[5] - result.signal[5])

    def test_constant_prices(self):
        """Test MACD is zero for a constant series"""
        result = macd_series([100.0] * 60)
        defined = [v for v in result.macd if v is not None]
        assert all(v == pytest.approx(0.0) for v in defined)
        assert result.signal[25 + 8] == pytest.approx(0.0)

    def test_uptrend_macd_above_signal(self):
        """Test MACD leads its signal line in an accelerating uptrend"""
        closes = [100.0 + 0.05 * i * i for i in range(60)]
        result = macd_series(closes)
        assert result.macd[-1] > 0
        assert result.histogram[-1] > 0

    def test_aligned_lengths(self):
        """Test all three series align with the input"""
        result = macd_series([1.0, 2.0, 3.0])
        assert len(result.macd) == len(result.signal) == len(result.histogram) == 3
        assert result.macd == [None, None, None]
