"""
Centralized logging configuration for candlesim.

All components log through structlog. Call ``configure_logging`` once at
process start; module loggers are obtained with ``get_logger`` or directly
with ``structlog.get_logger(__name__)``.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_signal_logger(name: str) -> FilteringBoundLogger:
    """Get a logger bound for signal scoring decisions."""
    return get_logger(name).bind(
        subsystem="signals",
        audit_trail=True
    )


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger specifically configured for position state transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for state transitions
    """
    return get_logger(name).bind(
        subsystem="position_engine",
        audit_trail=True
    )


def log_signal_decision(
    logger: FilteringBoundLogger,
    instrument_key: str,
    direction: str,
    bullish_score: int,
    bearish_score: int,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a fired signal with its scoring breakdown.

    Args:
        logger: Structlog logger instance
        instrument_key: Instrument the signal belongs to
        direction: Signal direction value
        bullish_score: Weighted bullish score
        bearish_score: Weighted bearish score
        reason: Which firing path was taken
        context: Additional context data
    """
    bound_logger = logger.bind(
        instrument_key=instrument_key,
        direction=direction,
        bullish_score=bullish_score,
        bearish_score=bearish_score,
        reason=reason,
        event="signal_decision"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.debug("Signal fired")


def log_state_transition(
    logger: FilteringBoundLogger,
    instrument_key: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a position state transition with standardized format.

    Args:
        logger: Structlog logger instance
        instrument_key: Instrument whose position is transitioning
        from_state: Current state (flat, long, short)
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        instrument_key=instrument_key,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
        event="state_transition"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")
