"""
Algorithm instance lifecycle state.

Tracks status, positions and health for each running algorithm and
validates transitions between idle → analyzing → signaling → executing.
"""

from .models import IN_FLIGHT_STATUSES, AlgorithmState, AlgorithmStatus
from .transitions import ALLOWED_TRANSITIONS, StateTransitionHandler, is_valid_transition, transition_handler

__all__ = [
    "ALLOWED_TRANSITIONS",
    "IN_FLIGHT_STATUSES",
    "AlgorithmState",
    "AlgorithmStatus",
    "StateTransitionHandler",
    "is_valid_transition",
    "transition_handler",
]
