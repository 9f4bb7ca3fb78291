"""
Tests for market data normalization.

Covers row parsing for both mapping and kline formats, OHLC sanity checks and
batch-level ordering, deduplication and error handling.
"""

from datetime import datetime, timezone

import orjson
import pytest

from candlesim.data.models import Candle
from candlesim.data.normalizer import normalize_batch, parse_candle_row, parse_json_payload
from candlesim.errors import MalformedDataError, MissingDataError

T0_MS = 1704110400000    # 2024-01-01T12:00:00Z


def _row(minute, open_=100.0, high=101.0, low=99.0, close=100.5, volume=1000.0):
    return {
        "time": T0_MS + minute * 60_000,
        "open": open_,
        "high": high,
        "low": low,
        "close": close,
        "volume": volume,
    }


class TestJsonPayload:
    """Test raw JSON parsing."""

    def test_parse_valid_json(self):
        assert parse_json_payload(b'[{"a": 1}]') == [{"a": 1}]

    def test_parse_invalid_json(self):
        with pytest.raises(MalformedDataError) as exc_info:
            parse_json_payload("{invalid")

        assert exc_info.value.expected_format == "json"


class TestCandleRowParsing:
    """Test single row parsing."""

    def test_parse_mapping_row(self):
        candle = parse_candle_row(_row(0))

        assert candle == Candle(
            ts=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
            open=100.0, high=101.0, low=99.0, close=100.5, volume=1000.0,
        )

    def test_parse_kline_row(self):
        """Test Binance-style kline arrays with numeric strings."""
        row = [T0_MS, "3.721", "3.743", "3.677", "3.708", "8422410", T0_MS + 59_999, "0"]

        candle = parse_candle_row(row)

        assert candle.open == 3.721
        assert candle.high == 3.743
        assert candle.volume == 8422410.0
        assert candle.ts == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("key", ["ts", "timestamp", "open_time", "openTime"])
    def test_alternate_time_keys(self, key):
        row = _row(0)
        row[key] = row.pop("time")

        assert parse_candle_row(row).ts.minute == 0

    def test_iso_timestamp(self):
        row = _row(0)
        row["time"] = "2024-01-01T12:00:00Z"

        assert parse_candle_row(row).ts == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_missing_volume_defaults_to_zero(self):
        row = _row(0)
        del row["volume"]

        assert parse_candle_row(row).volume == 0.0

    @pytest.mark.parametrize("row", [
        {"open": 1, "high": 1, "low": 1, "close": 1},
        {"time": T0_MS, "open": "abc", "high": 1, "low": 1, "close": 1},
        {"time": T0_MS, "open": float("nan"), "high": 1, "low": 1, "close": 1},
        {"time": T0_MS, "open": True, "high": 1, "low": 1, "close": 1},
        [T0_MS, "1", "1", "1"],
        "not a row",
    ])
    def test_malformed_rows(self, row):
        with pytest.raises(MalformedDataError):
            parse_candle_row(row)

    @pytest.mark.parametrize("overrides", [
        {"low": 0.0},
        {"volume": -1.0},
        {"high": 100.2},
        {"low": 100.6},
        {"high": 98.0, "low": 99.0, "open": 98.5, "close": 98.5},
    ])
    def test_ohlc_sanity(self, overrides):
        """Test inconsistent OHLC values are rejected."""
        with pytest.raises(MalformedDataError):
            parse_candle_row({**_row(0), **overrides})


class TestNormalizeBatch:
    """Test batch normalization."""

    def test_sorted_ascending(self):
        result = normalize_batch([_row(2), _row(0), _row(1)])

        minutes = [c.ts.minute for c in result.candles]
        assert minutes == [0, 1, 2]

    def test_duplicates_last_wins(self):
        """Test rows sharing a timestamp collapse to the last one."""
        result = normalize_batch([_row(0, close=100.1), _row(1), _row(0, close=100.9)])

        assert len(result.candles) == 2
        assert result.duplicate_rows == 1
        assert result.candles[0].close == 100.9

    def test_malformed_rows_dropped(self):
        result = normalize_batch([_row(0), {"time": T0_MS + 60_000}, _row(2, low=0.0)])

        assert len(result.candles) == 1
        assert result.rejected_rows == 2
        assert len(result.errors) == 2

    def test_json_batch(self):
        result = normalize_batch(orjson.dumps([_row(0), _row(1)]))

        assert len(result.candles) == 2

    def test_candle_objects_pass_through(self, candle_factory):
        candle = candle_factory(0, 100, 101, 99, 100.5)

        assert normalize_batch([candle]).candles == [candle]

    @pytest.mark.parametrize("batch", [None, [], [{"time": T0_MS}]])
    def test_missing_data(self, batch):
        with pytest.raises(MissingDataError):
            normalize_batch(batch)

    def test_non_sequence_batch(self):
        with pytest.raises(MalformedDataError):
            normalize_batch({"time": T0_MS})
