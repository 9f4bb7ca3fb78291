"""
Tests for time utilities.

Verifies timestamp normalization to aware UTC, ISO formatting and the signal
staleness check.
"""

from datetime import datetime, timedelta, timezone

import pytest

from candlesim.utils.time import (
    format_iso,
    is_stale,
    to_utc_datetime,
    utc_now,
)

NOON = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestToUtcDatetime:
    """Test timestamp normalization."""

    @pytest.mark.parametrize("value", [
        1704110400000,
        1704110400,
        1704110400.0,
        "1704110400000",
        "2024-01-01T12:00:00Z",
        "2024-01-01T12:00:00.000Z",
        "2024-01-01T13:00:00+01:00",
        datetime(2024, 1, 1, 12, 0, 0),
        datetime(2024, 1, 1, 7, 0, 0, tzinfo=timezone(timedelta(hours=-5))),
    ])
    def test_representations(self, value):
        """Test every supported representation maps to the same instant."""
        result = to_utc_datetime(value)

        assert result == NOON
        assert result.tzinfo == timezone.utc

    @pytest.mark.parametrize("value", ["", "   ", "not a time", True, -5, float("nan"), None, [1]])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            to_utc_datetime(value)


class TestFormatting:
    """Test ISO formatting."""

    def test_format_iso_millisecond_precision(self):
        ts = NOON + timedelta(microseconds=123456)

        assert format_iso(ts) == "2024-01-01T12:00:00.123Z"

    def test_format_iso_roundtrip(self):
        assert to_utc_datetime(format_iso(NOON)) == NOON

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is not None


class TestStaleness:
    """Test the staleness window."""

    def test_within_window(self):
        assert not is_stale(NOON, NOON + timedelta(seconds=60), 60)

    def test_outside_window(self):
        assert is_stale(NOON, NOON + timedelta(seconds=61), 60)

    def test_disabled(self):
        assert not is_stale(NOON, NOON + timedelta(days=365), None)
