"""
Error classification system for candle processing and paper trading.

Exceptions are grouped by how callers are expected to react: data quality
problems fall back to defaults, business rule violations skip a single
operation, and system failures are surfaced to the caller.
"""

from .business_rules import (
    BusinessRuleViolation,
    PositionSizeError,
    PriceSanityError,
    TemporalOrderError,
)
from .data_quality import (
    DataQualityError,
    MalformedDataError,
    MissingDataError,
    TemporalDataError,
)
from .system_failures import (
    MetricsCalculationError,
    PersistenceError,
    SystemFailureError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "TemporalDataError",
    "MissingDataError",
    "MalformedDataError",
    # Business Rule Violations
    "BusinessRuleViolation",
    "PriceSanityError",
    "TemporalOrderError",
    "PositionSizeError",
    # System Failures
    "SystemFailureError",
    "MetricsCalculationError",
    "PersistenceError",
]
