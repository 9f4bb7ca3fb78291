"""
Normalization of raw market data batches into canonical candles.

The market data provider is an external collaborator. It hands over a batch of
OHLCV rows for one symbol and timeframe, either as dictionaries or as
Binance-style kline arrays ``[open_time, open, high, low, close, volume, ...]``
with numeric strings. This module turns that batch into a time-ascending,
deduplicated list of Candle objects.
"""

from dataclasses import dataclass, field
from typing import Any, Union

import orjson
import structlog

from ..errors import MalformedDataError, MissingDataError
from ..utils.time import to_utc_datetime
from .models import Candle

logger = structlog.get_logger(__name__)

_TIME_KEYS = ("time", "ts", "timestamp", "open_time", "openTime")


@dataclass(frozen=True)
class BatchNormalizationResult:
    """Result of normalizing a raw candle batch."""
    candles: list[Candle] = field(default_factory=list)
    rejected_rows: int = 0
    duplicate_rows: int = 0
    errors: list[str] = field(default_factory=list)


def parse_json_payload(raw_data: Union[str, bytes]) -> Any:
    """
    Parse a raw JSON candle payload.

    Raises:
        MalformedDataError: If the payload is not valid JSON
    """
    try:
        return orjson.loads(raw_data)
    except orjson.JSONDecodeError as e:
        raise MalformedDataError(
            f"Invalid JSON payload: {e}",
            raw_data=str(raw_data)[:100],
            expected_format="json"
        )


def _as_float(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be numeric, got bool")
    result = float(value)
    if result != result or result in (float("inf"), float("-inf")):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return result


def parse_candle_row(row: Any) -> Candle:
    """
    Parse a single raw candle row.

    Args:
        row: Mapping with ``time``/``ts``/``timestamp`` and OHLCV keys, or a
            kline sequence ``[open_time, open, high, low, close, volume, ...]``

    Returns:
        Validated Candle

    Raises:
        MalformedDataError: If the row is malformed or fails OHLC sanity checks
    """
    try:
        if isinstance(row, dict):
            raw_ts = next((row[k] for k in _TIME_KEYS if row.get(k) is not None), None)
            if raw_ts is None:
                raise ValueError("missing timestamp")
            values = (row["open"], row["high"], row["low"], row["close"], row.get("volume", 0.0))
        elif isinstance(row, (list, tuple)):
            if len(row) < 6:
                raise ValueError(f"kline row needs at least 6 fields, got {len(row)}")
            raw_ts = row[0]
            values = tuple(row[1:6])
        else:
            raise ValueError(f"unsupported row type {type(row).__name__}")

        ts = to_utc_datetime(raw_ts)
        open_, high, low, close, volume = (
            _as_float(v, name) for v, name in zip(values, ("open", "high", "low", "close", "volume"))
        )
    except (KeyError, ValueError, TypeError, OverflowError) as e:
        raise MalformedDataError(
            f"Invalid candle row: {e}",
            raw_data=str(row)[:100],
            expected_format="ohlcv"
        )

    if min(open_, high, low, close) <= 0:
        raise MalformedDataError("Candle prices must be positive", raw_data=str(row)[:100])
    if volume < 0:
        raise MalformedDataError("Candle volume must be non-negative", raw_data=str(row)[:100])
    if high < max(open_, close) or low > min(open_, close) or high < low:
        raise MalformedDataError("Candle high/low inconsistent with open/close", raw_data=str(row)[:100])

    return Candle(ts=ts, open=open_, high=high, low=low, close=close, volume=volume)


def normalize_batch(raw_batch: Any) -> BatchNormalizationResult:
    """
    Normalize a raw provider batch into sorted, unique candles.

    Malformed rows are dropped and counted. Rows sharing a timestamp are
    deduplicated, the last one in the batch wins.

    Args:
        raw_batch: Sequence of raw rows, or a JSON string/bytes encoding one

    Returns:
        BatchNormalizationResult with time-ascending candles

    Raises:
        MissingDataError: If the batch is empty or contains no valid rows
        MalformedDataError: If the batch is not a sequence
    """
    if isinstance(raw_batch, (str, bytes)):
        raw_batch = parse_json_payload(raw_batch)

    if raw_batch is None:
        raise MissingDataError("No market data received", data_type="candles")
    if not isinstance(raw_batch, (list, tuple)):
        raise MalformedDataError(
            f"Candle batch must be a list, got {type(raw_batch).__name__}",
            raw_data=str(raw_batch)[:100]
        )
    if len(raw_batch) == 0:
        raise MissingDataError("Empty candle batch", data_type="candles")

    by_ts: dict = {}
    errors: list[str] = []
    duplicates = 0

    for row in raw_batch:
        if isinstance(row, Candle):
            candle = row
        else:
            try:
                candle = parse_candle_row(row)
            except MalformedDataError as e:
                errors.append(str(e))
                continue
        if candle.ts in by_ts:
            duplicates += 1
        by_ts[candle.ts] = candle

    if not by_ts:
        raise MissingDataError(
            "Candle batch contained no valid rows",
            data_type="candles",
            context={"rejected_rows": len(errors)}
        )

    if errors:
        logger.warning(
            "Dropped malformed candle rows",
            rejected_rows=len(errors),
            first_error=errors[0]
        )

    candles = [by_ts[ts] for ts in sorted(by_ts)]

    return BatchNormalizationResult(
        candles=candles,
        rejected_rows=len(errors),
        duplicate_rows=duplicates,
        errors=errors,
    )
