"""
System failure error classifications.

These exceptions represent failures of collaborators or of the coordinator's
own bookkeeping. They abort the operation that raised them and move the
affected algorithm instance into its error state.
"""

from typing import Any, Dict, Optional


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ExecutionGatewayError(SystemFailureError):
    """Placing, closing or modifying an order failed at the gateway."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 ticket: Optional[int] = None, symbol: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.ticket = ticket
        self.symbol = symbol


class StateTransitionError(SystemFailureError):
    """Invalid algorithm state transition."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.attempted_transition = attempted_transition


class PersistenceError(SystemFailureError):
    """Config store read or write failure."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target
