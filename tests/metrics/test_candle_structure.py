"""Tests for candle structure analysis"""

import pytest

from candlesim.metrics.candle_structure import analyze_candle_structure


class TestCandleStructure:
    """Test body and shadow decomposition"""

    def test_bullish_candle(self, candle_factory):
        """Test a bullish candle with both shadows"""
        structure = analyze_candle_structure(candle_factory(0, 100, 106, 98, 104))

        assert structure.range_value == 8.0
        assert structure.body == 4.0
        assert structure.upper_shadow == 2.0
        assert structure.lower_shadow == 2.0
        assert structure.body_pct == pytest.approx(0.5)
        assert structure.upper_pct == pytest.approx(0.25)
        assert structure.lower_pct == pytest.approx(0.25)
        assert structure.is_bull
        assert not structure.is_bear

    def test_bearish_candle(self, candle_factory):
        """Test a bearish candle"""
        structure = analyze_candle_structure(candle_factory(0, 104, 105, 99, 100))

        assert structure.body == 4.0
        assert structure.upper_shadow == 1.0
        assert structure.lower_shadow == 1.0
        assert structure.is_bear
        assert not structure.is_bull

    def test_zero_range_candle(self, candle_factory):
        """Test a flat candle does not divide by zero"""
        structure = analyze_candle_structure(candle_factory(0, 100, 100, 100, 100))

        assert structure.range_value == 0.0
        assert structure.body_pct == 0.0
        assert structure.upper_pct == 0.0
        assert structure.lower_pct == 0.0
        assert not structure.is_bull
        assert not structure.is_bear
