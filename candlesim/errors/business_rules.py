"""
Business rule violations raised by the position engine.

A violation rejects a single open/add/close operation. The candle is skipped,
the position and ledger are left as they were and a warning is logged.
"""

from typing import Any, Dict, Optional


class BusinessRuleViolation(Exception):
    """Base class for rejected paper trading operations."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.operation = operation
        self.context = context or {}
        self.recoverable = True


class PriceSanityError(BusinessRuleViolation):
    """Execution price outside the candle range plus slippage tolerance."""

    def __init__(self, message: str, price: Optional[float] = None,
                 low_bound: Optional[float] = None, high_bound: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.price = price
        self.low_bound = low_bound
        self.high_bound = high_bound


class TemporalOrderError(BusinessRuleViolation):
    """Exit or add timestamp earlier than the position entry."""

    def __init__(self, message: str, entry_time: Optional[Any] = None,
                 event_time: Optional[Any] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.entry_time = entry_time
        self.event_time = event_time


class PositionSizeError(BusinessRuleViolation):
    """Operation would produce a zero or negative position size."""

    def __init__(self, message: str, size: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.size = size
