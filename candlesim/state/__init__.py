"""
Paper position state machine module.

Tracks a single open position per instrument through Flat, Long and Short
states, applying entries, adds, flips, stop-loss and take-profit exits.
"""

from .machine import PositionStateMachine, ReplayResult
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

__all__ = [
    "PositionStateMachine",
    "ReplayResult",
    "EngineState",
    "EventKind",
    "ExitReason",
    "Position",
    "PositionEvent",
    "PositionSide",
    "PositionState",
    "Trade",
]
