"""
Paper position state machine.

Replays candles and their signals against a single-position paper account.
Each candle is handled in a fixed order: the exit check on the position carried
into the candle, then the candle's signal. Operations that break a business
rule are rejected and leave the state exactly as it was before the operation.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Sequence

from ..config.defaults import ExecutionParams, RiskConfig
from ..data.models import Candle
from ..errors import BusinessRuleViolation, PositionSizeError, PriceSanityError, TemporalOrderError
from ..logging.config import get_state_logger, log_state_transition
from ..signals.models import Signal, SignalDirection
from ..utils.time import is_stale
from .models import (
    EngineState,
    EventKind,
    ExitReason,
    Position,
    PositionEvent,
    PositionSide,
    PositionState,
    Trade,
)

state_logger = get_state_logger(__name__)

# Executed signal keys kept in state; older keys are covered by last_processed_ts
MAX_EXECUTED_SIGNAL_KEYS = 500


@dataclass(frozen=True)
class ReplayResult:
    """State and events produced by replaying a candle sequence."""
    state: EngineState
    events: list[PositionEvent] = field(default_factory=list)


def _side_to_state(side: Optional[PositionSide]) -> PositionState:
    if side is None:
        return PositionState.FLAT
    return PositionState.LONG if side is PositionSide.BUY else PositionState.SHORT


class PositionStateMachine:
    """Flat/Long/Short paper position engine for a single instrument."""

    def __init__(
        self,
        risk: Optional[RiskConfig] = None,
        execution: Optional[ExecutionParams] = None,
        instrument_key: str = ""
    ):
        self.risk = risk or RiskConfig()
        self.execution = execution or ExecutionParams()
        self.instrument_key = instrument_key

    def replay(
        self,
        state: EngineState,
        candles: Sequence[Candle],
        signals: Sequence[Optional[Signal]],
        now: Optional[datetime] = None
    ) -> ReplayResult:
        """
        Apply a time-ascending candle window and its aligned signals.

        Candles at or before ``state.last_processed_ts`` are skipped, so the
        same window can be replayed any number of times.

        Raises:
            ValueError: If candles and signals are not aligned
        """
        if len(candles) != len(signals):
            raise ValueError(
                f"Signals ({len(signals)}) not aligned with candles ({len(candles)})"
            )

        events: list[PositionEvent] = []
        for candle, signal in zip(candles, signals):
            state, candle_events = self.apply(state, candle, signal, now)
            events.extend(candle_events)

        return ReplayResult(state=state, events=events)

    def apply(
        self,
        state: EngineState,
        candle: Candle,
        signal: Optional[Signal] = None,
        now: Optional[datetime] = None
    ) -> tuple[EngineState, list[PositionEvent]]:
        """
        Process one candle: exit check first, then the candle's signal.

        Args:
            state: State carried into the candle
            candle: Candle being processed
            signal: Signal produced for this candle, if any
            now: Wall-clock time for the staleness window

        Returns:
            Tuple of (new state, events emitted on this candle)
        """
        if state.last_processed_ts is not None and candle.ts <= state.last_processed_ts:
            return state, []

        state = replace(state, last_processed_ts=candle.ts)
        events: list[PositionEvent] = []

        if state.position is not None:
            try:
                state, exit_events = self._check_exit(state, candle)
                events.extend(exit_events)
            except BusinessRuleViolation as e:
                events.append(self._rejected(state, candle, "exit", e))

        if signal is None or signal.direction is SignalDirection.NONE:
            return state, events

        if signal.key in state.executed_signal_keys:
            return state, events
        state = replace(state, executed_signal_keys=self._remember_key(state, signal.key))

        if now is not None and is_stale(signal.ts, now, self.execution.max_signal_age_seconds):
            state_logger.debug(
                "Stale signal ignored",
                instrument_key=self.instrument_key,
                signal_key=signal.key,
                max_age_seconds=self.execution.max_signal_age_seconds
            )
            events.append(PositionEvent(
                kind=EventKind.IGNORED,
                ts=candle.ts,
                price=signal.reference_price,
                balance_after=state.balance,
                detail="stale signal"
            ))
            return state, events

        try:
            state, signal_events = self._handle_signal(state, candle, signal)
            events.extend(signal_events)
        except BusinessRuleViolation as e:
            events.append(self._rejected(state, candle, "signal", e))

        return state, events

    # Sizing and checks

    def position_size(self, balance: float, price: float) -> float:
        """Units to buy or sell for a new entry (or add) at the given price."""
        if price <= 0:
            raise PositionSizeError("Execution price must be positive", size=0.0)
        notional = min(
            balance * self.risk.position_size_percent / 100.0,
            balance * self.risk.max_position_fraction
        )
        return round(notional / price, 8)

    def _check_price(self, price: float, candle: Candle) -> None:
        low_bound = candle.low * (1 - self.risk.slippage_rate)
        high_bound = candle.high * (1 + self.risk.slippage_rate)
        if not low_bound <= price <= high_bound:
            raise PriceSanityError(
                f"Execution price {price} outside candle range [{low_bound}, {high_bound}]",
                price=price,
                low_bound=low_bound,
                high_bound=high_bound,
                operation="execute",
                context={"candle_ts": candle.ts.isoformat()}
            )

    def _check_time(self, position: Position, candle: Candle) -> None:
        if candle.ts < position.entry_time:
            raise TemporalOrderError(
                "Candle is earlier than position entry",
                entry_time=position.entry_time,
                event_time=candle.ts,
                operation="close"
            )

    def _remember_key(self, state: EngineState, key: str) -> frozenset[str]:
        keys = state.executed_signal_keys | {key}
        if len(keys) > MAX_EXECUTED_SIGNAL_KEYS:
            keys = frozenset(sorted(keys)[-MAX_EXECUTED_SIGNAL_KEYS:])
        return keys

    # Exit handling

    def _check_exit(self, state: EngineState, candle: Candle) -> tuple[EngineState, list[PositionEvent]]:
        position = state.position
        assert position is not None

        if position.is_long:
            stop_hit = candle.low <= position.stop_loss
            target_hit = candle.high >= position.take_profit
        else:
            stop_hit = candle.high >= position.stop_loss
            target_hit = candle.low <= position.take_profit

        if stop_hit:
            return self._close(state, candle, position.stop_loss, ExitReason.STOP_LOSS)

        if target_hit:
            if self.execution.partial_take_profit:
                return self._partial_close(state, candle, position.take_profit)
            return self._close(state, candle, position.take_profit, ExitReason.TAKE_PROFIT)

        return state, []

    def _realized_pnl(self, position: Position, size: float, exit_price: float) -> tuple[float, float]:
        rate = self.risk.quote_conversion_rate
        if position.is_long:
            pnl = size * (exit_price - position.entry_price) * rate
        else:
            pnl = size * (position.entry_price - exit_price) * rate
        basis = size * position.entry_price * rate
        pnl_percent = pnl / basis * 100.0 if basis > 0 else 0.0
        return pnl, pnl_percent

    def _close(
        self,
        state: EngineState,
        candle: Candle,
        exit_price: float,
        reason: ExitReason
    ) -> tuple[EngineState, list[PositionEvent]]:
        position = state.position
        assert position is not None
        self._check_time(position, candle)

        pnl, pnl_percent = self._realized_pnl(position, position.size, exit_price)
        exit_commission = position.size * exit_price * self.risk.commission_rate
        balance_delta = position.size * position.entry_price + pnl - exit_commission
        balance = state.balance + balance_delta

        trade = Trade(
            side=position.side,
            entry_price=position.entry_price,
            exit_price=exit_price,
            size=position.size,
            entry_time=position.entry_time,
            exit_time=candle.ts,
            pnl_amount=pnl,
            pnl_percent=pnl_percent,
            exit_reason=reason,
            commissions=position.commission_paid + exit_commission,
            balance_after=balance
        )

        log_state_transition(
            state_logger,
            instrument_key=self.instrument_key,
            from_state=_side_to_state(position.side).value,
            to_state=PositionState.FLAT.value,
            trigger=reason.value,
            context={
                "exit_price": exit_price,
                "size": position.size,
                "pnl": pnl,
                "balance": balance,
                "timestamp": candle.ts.isoformat()
            }
        )

        new_state = replace(state, position=None, balance=balance, trades=state.trades + (trade,))
        event = PositionEvent(
            kind=EventKind.CLOSE,
            ts=candle.ts,
            side=position.side,
            price=exit_price,
            size=position.size,
            balance_delta=balance_delta,
            balance_after=balance,
            detail=reason.value,
            trade=trade
        )
        return new_state, [event]

    def _partial_close(
        self,
        state: EngineState,
        candle: Candle,
        exit_price: float
    ) -> tuple[EngineState, list[PositionEvent]]:
        position = state.position
        assert position is not None
        self._check_time(position, candle)

        close_size = position.size / 2
        if close_size <= 0:
            raise PositionSizeError("Partial close size must be positive", size=close_size,
                                    operation="partial_close")

        pnl, pnl_percent = self._realized_pnl(position, close_size, exit_price)
        exit_commission = close_size * exit_price * self.risk.commission_rate
        entry_commission_share = position.commission_paid * 0.5
        balance_delta = close_size * position.entry_price + pnl - exit_commission
        balance = state.balance + balance_delta

        trade = Trade(
            side=position.side,
            entry_price=position.entry_price,
            exit_price=exit_price,
            size=close_size,
            entry_time=position.entry_time,
            exit_time=candle.ts,
            pnl_amount=pnl,
            pnl_percent=pnl_percent,
            exit_reason=ExitReason.PARTIAL_TAKE_PROFIT,
            commissions=entry_commission_share + exit_commission,
            balance_after=balance
        )

        step = self.execution.partial_take_profit_step_pct / 100.0
        if position.is_long:
            new_take_profit = exit_price * (1 + step)
        else:
            new_take_profit = exit_price * (1 - step)

        remaining = replace(
            position,
            size=position.size - close_size,
            commission_paid=position.commission_paid - entry_commission_share,
            take_profit=new_take_profit
        )

        state_logger.info(
            "Partial take profit",
            instrument_key=self.instrument_key,
            side=position.side.value,
            exit_price=exit_price,
            closed_size=close_size,
            remaining_size=remaining.size,
            new_take_profit=new_take_profit,
            pnl=pnl
        )

        new_state = replace(state, position=remaining, balance=balance, trades=state.trades + (trade,))
        event = PositionEvent(
            kind=EventKind.PARTIAL_CLOSE,
            ts=candle.ts,
            side=position.side,
            price=exit_price,
            size=close_size,
            balance_delta=balance_delta,
            balance_after=balance,
            detail=ExitReason.PARTIAL_TAKE_PROFIT.value,
            trade=trade
        )
        return new_state, [event]

    # Signal handling

    def _handle_signal(
        self,
        state: EngineState,
        candle: Candle,
        signal: Signal
    ) -> tuple[EngineState, list[PositionEvent]]:
        side = PositionSide.BUY if signal.direction.is_buy else PositionSide.SELL
        position = state.position

        if position is None:
            return self._open(state, candle, signal, side)

        if position.side is not side:
            if signal.confidence <= position.signal_confidence:
                return state, [self._ignored(state, candle, signal, "opposite signal with lower confidence")]

            # Both legs are validated before anything is applied
            self._check_price(signal.reference_price, candle)
            state, close_events = self._close(state, candle, signal.reference_price, ExitReason.SIGNAL)
            state, open_events = self._open(state, candle, signal, side)
            return state, close_events + open_events

        if self.execution.add_to_winners:
            in_profit = (
                candle.close > position.entry_price if position.is_long
                else candle.close < position.entry_price
            )
            if in_profit and signal.confidence > position.signal_confidence:
                return self._add(state, candle, signal)

        return state, [self._ignored(state, candle, signal, "same side signal")]

    def _open(
        self,
        state: EngineState,
        candle: Candle,
        signal: Signal,
        side: PositionSide
    ) -> tuple[EngineState, list[PositionEvent]]:
        price = signal.reference_price
        self._check_price(price, candle)

        size = self.position_size(state.balance, price)
        if size <= 0:
            raise PositionSizeError(
                f"Position size {size} must be positive",
                size=size,
                operation="open",
                context={"balance": state.balance, "price": price}
            )

        cost = size * price
        commission = cost * self.risk.commission_rate
        balance_delta = -(cost + commission)
        balance = state.balance + balance_delta

        sl_fraction = self.risk.stop_loss_percent / 100.0
        tp_fraction = self.risk.take_profit_percent / 100.0
        if side is PositionSide.BUY:
            stop_loss = price * (1 - sl_fraction)
            take_profit = price * (1 + tp_fraction)
        else:
            stop_loss = price * (1 + sl_fraction)
            take_profit = price * (1 - tp_fraction)

        position = Position(
            side=side,
            entry_price=price,
            entry_time=candle.ts,
            size=size,
            stop_loss=stop_loss,
            take_profit=take_profit,
            commission_paid=commission,
            signal_confidence=signal.confidence
        )

        log_state_transition(
            state_logger,
            instrument_key=self.instrument_key,
            from_state=PositionState.FLAT.value,
            to_state=_side_to_state(side).value,
            trigger=signal.direction.value,
            context={
                "entry_price": price,
                "size": size,
                "stop_loss": stop_loss,
                "take_profit": take_profit,
                "confidence": signal.confidence,
                "timestamp": candle.ts.isoformat()
            }
        )

        new_state = replace(state, position=position, balance=balance)
        event = PositionEvent(
            kind=EventKind.OPEN,
            ts=candle.ts,
            side=side,
            price=price,
            size=size,
            balance_delta=balance_delta,
            balance_after=balance,
            detail=signal.source_tag
        )
        return new_state, [event]

    def _add(
        self,
        state: EngineState,
        candle: Candle,
        signal: Signal
    ) -> tuple[EngineState, list[PositionEvent]]:
        position = state.position
        assert position is not None
        self._check_time(position, candle)

        price = signal.reference_price
        self._check_price(price, candle)

        added_size = self.position_size(state.balance, price)
        if added_size <= 0:
            raise PositionSizeError(
                f"Added size {added_size} must be positive",
                size=added_size,
                operation="add",
                context={"balance": state.balance, "price": price}
            )

        cost = added_size * price
        commission = cost * self.risk.commission_rate
        balance_delta = -(cost + commission)
        balance = state.balance + balance_delta

        new_entry = (candle.close + position.entry_price) / 2
        if position.is_long:
            stop_loss = new_entry - (new_entry - position.stop_loss) * 0.5
            take_profit = new_entry + (position.take_profit - new_entry) * 0.5
        else:
            stop_loss = new_entry + (position.stop_loss - new_entry) * 0.5
            take_profit = new_entry - (new_entry - position.take_profit) * 0.5

        updated = replace(
            position,
            entry_price=new_entry,
            size=position.size + added_size,
            stop_loss=stop_loss,
            take_profit=take_profit,
            commission_paid=position.commission_paid + commission,
            signal_confidence=signal.confidence
        )

        state_logger.info(
            "Added to position",
            instrument_key=self.instrument_key,
            side=position.side.value,
            added_size=added_size,
            total_size=updated.size,
            new_entry=new_entry,
            stop_loss=stop_loss,
            take_profit=take_profit,
            confidence=signal.confidence
        )

        new_state = replace(state, position=updated, balance=balance)
        event = PositionEvent(
            kind=EventKind.ADD,
            ts=candle.ts,
            side=position.side,
            price=price,
            size=added_size,
            balance_delta=balance_delta,
            balance_after=balance,
            detail=signal.source_tag
        )
        return new_state, [event]

    # Event helpers

    def _ignored(self, state: EngineState, candle: Candle, signal: Signal, detail: str) -> PositionEvent:
        return PositionEvent(
            kind=EventKind.IGNORED,
            ts=candle.ts,
            side=state.position.side if state.position else None,
            price=signal.reference_price,
            balance_after=state.balance,
            detail=detail
        )

    def _rejected(
        self,
        state: EngineState,
        candle: Candle,
        stage: str,
        error: BusinessRuleViolation
    ) -> PositionEvent:
        state_logger.warning(
            "Operation rejected",
            instrument_key=self.instrument_key,
            stage=stage,
            error_type=type(error).__name__,
            error=str(error),
            operation=error.operation,
            timestamp=candle.ts.isoformat()
        )
        return PositionEvent(
            kind=EventKind.REJECTED,
            ts=candle.ts,
            side=state.position.side if state.position else None,
            balance_after=state.balance,
            detail=f"{type(error).__name__}: {error}"
        )
