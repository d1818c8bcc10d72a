"""
Logging configuration and utilities for the trading core.
"""
from .config import (
    configure_logging,
    get_logger,
    get_risk_logger,
    get_state_logger,
    log_risk_decision,
    log_state_transition,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "get_risk_logger",
    "get_state_logger",
    "log_risk_decision",
    "log_state_transition",
]
