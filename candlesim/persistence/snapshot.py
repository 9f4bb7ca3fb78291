"""
Snapshot codec for per-instrument paper trading state.

A snapshot is a JSON object::

    {
        "trades": [...],
        "currentPosition": {...} | null,
        "virtualBalance": 25000.0,
        "performanceMetrics": {...},
        "instrumentKey": "BTCUSDT",
        "lastProcessedTime": "2024-01-01T12:00:00.000Z" | null,
        "executedSignals": [...]
    }

Storage belongs to the caller (see ``SnapshotStore`` for a sqlite option);
this module only owns the schema.
"""

import math
from typing import Any, Optional, Union

import orjson
import structlog

from ..config.defaults import RiskConfig
from ..errors import DataQualityError, MalformedDataError, TemporalDataError
from ..performance.models import PerformanceSnapshot
from ..performance.tracker import compute_performance
from ..state.models import EngineState, ExitReason, Position, PositionSide, Trade
from ..utils.time import format_iso, to_utc_datetime

logger = structlog.get_logger(__name__)

_INFINITY = "Infinity"


def _encode_trade(trade: Trade) -> dict[str, Any]:
    return {
        "type": trade.side.value,
        "entryPrice": trade.entry_price,
        "exitPrice": trade.exit_price,
        "positionSize": trade.size,
        "pnlAmount": trade.pnl_amount,
        "pnlPercent": trade.pnl_percent,
        "entryTime": format_iso(trade.entry_time),
        "exitTime": format_iso(trade.exit_time),
        "exitReason": trade.exit_reason.value,
        "commissions": trade.commissions,
        "virtualBalanceAfter": trade.balance_after,
    }


def _encode_position(position: Optional[Position]) -> Optional[dict[str, Any]]:
    if position is None:
        return None
    return {
        "type": position.side.value,
        "entryPrice": position.entry_price,
        "entryTime": format_iso(position.entry_time),
        "positionSize": position.size,
        "stopLoss": position.stop_loss,
        "takeProfit": position.take_profit,
        "commissionPaid": position.commission_paid,
        "signalConfidence": position.signal_confidence,
    }


def _encode_performance(performance: PerformanceSnapshot) -> dict[str, Any]:
    profit_factor: Union[float, str] = performance.profit_factor
    if math.isinf(performance.profit_factor):
        profit_factor = _INFINITY
    return {
        "totalTrades": performance.total_trades,
        "winningTrades": performance.winning_trades,
        "losingTrades": performance.losing_trades,
        "winRate": performance.win_rate,
        "totalPnl": performance.total_pnl,
        "maxDrawdown": performance.max_drawdown_percent,
        "profitFactor": profit_factor,
        "averageTradeDuration": performance.average_trade_duration_hours,
    }


def encode_snapshot(state: EngineState, performance: PerformanceSnapshot) -> dict[str, Any]:
    """Encode engine state and its performance into a JSON-ready dictionary."""
    return {
        "trades": [_encode_trade(t) for t in state.trades],
        "currentPosition": _encode_position(state.position),
        "virtualBalance": state.balance,
        "performanceMetrics": _encode_performance(performance),
        "instrumentKey": state.instrument_key,
        "lastProcessedTime": format_iso(state.last_processed_ts) if state.last_processed_ts else None,
        "executedSignals": sorted(state.executed_signal_keys),
    }


def dumps_snapshot(state: EngineState, performance: PerformanceSnapshot) -> bytes:
    """Serialize a snapshot to JSON bytes."""
    return orjson.dumps(encode_snapshot(state, performance))


def _number(data: dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = data.get(key, default)
    if value is None or isinstance(value, bool):
        raise ValueError(f"{key} must be a number")
    if value == _INFINITY:
        return math.inf
    result = float(value)
    if result != result:
        raise ValueError(f"{key} is NaN")
    return result


def _side(value: Any) -> PositionSide:
    if not isinstance(value, str):
        raise ValueError(f"Invalid side {value!r}")
    return PositionSide(value.strip().lower())


def decode_trade(data: dict[str, Any]) -> Trade:
    """
    Decode one snapshot trade record.

    Raises:
        TemporalDataError: If the exit time precedes the entry time
        ValueError, KeyError, TypeError: If fields are missing or malformed
    """
    entry_time = to_utc_datetime(data["entryTime"])
    exit_time = to_utc_datetime(data["exitTime"])
    if exit_time < entry_time:
        raise TemporalDataError(
            "Trade exit time precedes entry time",
            timestamp=exit_time,
            expected_timestamp=entry_time
        )

    return Trade(
        side=_side(data["type"]),
        entry_price=_number(data, "entryPrice"),
        exit_price=_number(data, "exitPrice"),
        size=_number(data, "positionSize"),
        entry_time=entry_time,
        exit_time=exit_time,
        pnl_amount=_number(data, "pnlAmount"),
        pnl_percent=_number(data, "pnlPercent", 0.0),
        exit_reason=ExitReason.parse(data.get("exitReason")),
        commissions=_number(data, "commissions", 0.0),
        balance_after=_number(data, "virtualBalanceAfter", 0.0),
    )


def _decode_position(data: Optional[dict[str, Any]]) -> Optional[Position]:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise TypeError("currentPosition must be an object or null")

    size = _number(data, "positionSize")
    if size < 0:
        raise ValueError("positionSize must be non-negative")

    return Position(
        side=_side(data["type"]),
        entry_price=_number(data, "entryPrice"),
        entry_time=to_utc_datetime(data["entryTime"]),
        size=size,
        stop_loss=_number(data, "stopLoss"),
        take_profit=_number(data, "takeProfit"),
        commission_paid=_number(data, "commissionPaid", 0.0),
        signal_confidence=int(data.get("signalConfidence") or 0),
    )


def decode_snapshot(
    data: Any,
    risk: Optional[RiskConfig] = None,
    instrument_key: Optional[str] = None
) -> tuple[EngineState, PerformanceSnapshot]:
    """
    Decode a snapshot dictionary.

    Performance is recomputed from the decoded trades rather than trusted from
    the stored ``performanceMetrics``.

    Args:
        data: Decoded JSON object
        risk: Risk configuration providing the starting balance
        instrument_key: Expected instrument; defaults to the stored key

    Returns:
        Tuple of (EngineState, PerformanceSnapshot)

    Raises:
        MalformedDataError: If the snapshot structure or any value is invalid
    """
    risk = risk or RiskConfig()

    if not isinstance(data, dict):
        raise MalformedDataError(
            f"Snapshot must be an object, got {type(data).__name__}",
            raw_data=str(data)[:100],
            expected_format="snapshot"
        )

    try:
        raw_trades = data.get("trades") or []
        if not isinstance(raw_trades, list):
            raise TypeError("trades must be a list")
        trades = tuple(decode_trade(t) for t in raw_trades)

        position = _decode_position(data.get("currentPosition"))
        balance = _number(data, "virtualBalance", risk.starting_balance)

        last_processed = data.get("lastProcessedTime")
        last_processed_ts = to_utc_datetime(last_processed) if last_processed else None

        executed = data.get("executedSignals") or []
        if not isinstance(executed, list):
            raise TypeError("executedSignals must be a list")
    except (KeyError, ValueError, TypeError, OverflowError, TemporalDataError) as e:
        raise MalformedDataError(
            f"Invalid snapshot: {e}",
            raw_data=str(data)[:100],
            expected_format="snapshot"
        )

    state = EngineState(
        instrument_key=instrument_key or str(data.get("instrumentKey") or ""),
        balance=balance,
        position=position,
        trades=trades,
        last_processed_ts=last_processed_ts,
        executed_signal_keys=frozenset(str(k) for k in executed),
    )
    return state, compute_performance(trades, risk.starting_balance)


def loads_snapshot(
    raw: Union[str, bytes],
    risk: Optional[RiskConfig] = None,
    instrument_key: Optional[str] = None
) -> tuple[EngineState, PerformanceSnapshot]:
    """
    Parse and decode JSON snapshot text.

    Raises:
        MalformedDataError: If the text is not valid JSON or not a valid snapshot
    """
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MalformedDataError(
            f"Invalid snapshot JSON: {e}",
            raw_data=str(raw)[:100],
            expected_format="json"
        )
    return decode_snapshot(data, risk, instrument_key)


def load_state_or_default(
    raw: Union[str, bytes, dict, None],
    instrument_key: str,
    risk: Optional[RiskConfig] = None
) -> tuple[EngineState, PerformanceSnapshot]:
    """
    Restore state from a stored snapshot, falling back to a fresh account.

    Missing or invalid snapshots yield a flat state with no trades at the
    starting balance. Invalid snapshots are logged as warnings.
    """
    risk = risk or RiskConfig()
    fresh = EngineState.fresh(instrument_key, risk.starting_balance)

    if raw is None:
        return fresh, PerformanceSnapshot()

    try:
        if isinstance(raw, (str, bytes)):
            return loads_snapshot(raw, risk, instrument_key)
        return decode_snapshot(raw, risk, instrument_key)
    except DataQualityError as e:
        logger.warning(
            "Invalid snapshot, starting from defaults",
            instrument_key=instrument_key,
            error=str(e),
            starting_balance=risk.starting_balance
        )
        return fresh, PerformanceSnapshot()
