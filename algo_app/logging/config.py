"""
Centralized logging configuration for the trading core.

Every component logs through structlog using the configuration set up here so
that backtests, strategy cycles and risk decisions all emit the same
key-value event format.
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
        format_json: If True, output JSON lines; otherwise a console renderer
        include_timestamp: Add an ISO timestamp to every event
        include_caller: Add filename and line number to every event
        extra_processors: Additional structlog processors inserted before rendering
    """
    log_level = getattr(logging, level.upper())

    # structlog renders, stdlib only routes
    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"
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
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Bound structlog logger
    """
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for algorithm state machine events.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger carrying the state machine subsystem tag
    """
    return get_logger(name).bind(
        subsystem="state_machine",
        audit_trail=True
    )


def get_risk_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for risk checks and protective actions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger carrying the risk subsystem tag
    """
    return get_logger(name).bind(
        subsystem="risk",
        audit_trail=True
    )


def log_state_transition(
    logger: FilteringBoundLogger,
    algorithm_id: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log an algorithm state transition in the standard format.

    Args:
        logger: Structlog logger instance
        algorithm_id: Algorithm whose state changed
        from_state: Previous status value
        to_state: New status value
        trigger: What caused the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        algorithm_id=algorithm_id,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("state_transition")


def log_risk_decision(
    logger: FilteringBoundLogger,
    check_name: str,
    passed: bool,
    subject_id: str,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the outcome of a risk check.

    Args:
        logger: Structlog logger instance
        check_name: Name of the risk check
        passed: Whether the check passed
        subject_id: Algorithm id, account id or position ticket being checked
        reason: Explanation of the outcome
        context: Additional context data
    """
    bound_logger = logger.bind(
        check_name=check_name,
        check_result="PASS" if passed else "FAIL",
        subject_id=subject_id,
        reason=reason,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if passed:
        bound_logger.info("risk_check_passed")
    else:
        bound_logger.warning("risk_check_failed")
