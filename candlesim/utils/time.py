"""
Time handling utilities for candle timestamps and signal staleness.

Candle timestamps arrive as epoch milliseconds, epoch seconds, ISO-8601 strings
or datetimes. Everything is normalized to timezone-aware UTC datetimes.
"""

from datetime import datetime, timezone
from typing import Any, Optional

# Epoch values above this are treated as milliseconds (year 2286 in seconds)
_MS_THRESHOLD = 10_000_000_000


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc_datetime(value: Any) -> datetime:
    """
    Convert a timestamp in any supported representation to aware UTC.

    Args:
        value: datetime, epoch seconds/milliseconds (int, float or numeric
            string) or ISO-8601 string

    Returns:
        Timezone-aware UTC datetime

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")

    if isinstance(value, (int, float)):
        return _from_epoch(float(value))

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty timestamp string")
        try:
            return _from_epoch(float(text))
        except ValueError:
            pass
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
        return to_utc_datetime(parsed)

    raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")


def _from_epoch(value: float) -> datetime:
    if value != value or value < 0:
        raise ValueError(f"Invalid epoch timestamp: {value}")
    if value > _MS_THRESHOLD:
        value = value / 1000.0
    return datetime.fromtimestamp(value, tz=timezone.utc)


def format_iso(ts: datetime) -> str:
    """
    Format a timestamp as ISO-8601 with millisecond precision and a Z suffix.

    Args:
        ts: Timestamp to format

    Returns:
        String like ``2024-01-01T12:00:00.000Z``
    """
    ts = to_utc_datetime(ts)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def is_stale(ts: datetime, now: datetime, max_age_seconds: Optional[float]) -> bool:
    """
    Check whether a timestamp is too old to act on.

    Args:
        ts: Event timestamp
        now: Reference wall-clock time
        max_age_seconds: Maximum allowed age; None disables the check

    Returns:
        True if the event is older than the allowed age
    """
    if max_age_seconds is None:
        return False
    return (now - ts).total_seconds() > max_age_seconds
