"""
State transition rules for the algorithm instance lifecycle.

Success loop: idle → analyzing → signaling → executing → idle. Any stage may
fault into error; paused is entered by an explicit stop and left only by an
explicit resume.
"""

from datetime import datetime
from typing import Any, Optional

import structlog

from ..errors import StateTransitionError
from ..logging.config import get_state_logger, log_state_transition
from .models import AlgorithmState, AlgorithmStatus

logger = structlog.get_logger(__name__)
state_logger = get_state_logger(__name__)


ALLOWED_TRANSITIONS: dict[AlgorithmStatus, frozenset[AlgorithmStatus]] = {
    AlgorithmStatus.IDLE: frozenset({AlgorithmStatus.ANALYZING, AlgorithmStatus.PAUSED}),
    AlgorithmStatus.ANALYZING: frozenset({
        AlgorithmStatus.SIGNALING, AlgorithmStatus.IDLE, AlgorithmStatus.ERROR, AlgorithmStatus.PAUSED,
    }),
    AlgorithmStatus.SIGNALING: frozenset({
        AlgorithmStatus.EXECUTING, AlgorithmStatus.IDLE, AlgorithmStatus.ERROR, AlgorithmStatus.PAUSED,
    }),
    AlgorithmStatus.EXECUTING: frozenset({
        AlgorithmStatus.IDLE, AlgorithmStatus.ERROR, AlgorithmStatus.PAUSED,
    }),
    AlgorithmStatus.ERROR: frozenset({
        AlgorithmStatus.ANALYZING, AlgorithmStatus.IDLE, AlgorithmStatus.PAUSED,
    }),
    AlgorithmStatus.PAUSED: frozenset({AlgorithmStatus.IDLE}),
}


def is_valid_transition(current: AlgorithmStatus, target: AlgorithmStatus) -> bool:
    """Check a status change against the lifecycle rules."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


class StateTransitionHandler:
    """Applies validated status changes to AlgorithmState with audit logging."""

    def __init__(self):
        self.logger = logger

    def transition(
        self,
        state: AlgorithmState,
        target: AlgorithmStatus,
        trigger: str,
        timestamp: Optional[datetime] = None,
        error_message: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> AlgorithmState:
        """
        Move an algorithm to a new status.

        Args:
            state: Current state
            target: Requested status
            trigger: What caused the change (logged)
            timestamp: Transition time
            error_message: Recorded when entering the error status
            context: Extra audit context

        Returns:
            New AlgorithmState

        Raises:
            StateTransitionError: transition not allowed from the current status
        """
        if not is_valid_transition(state.status, target):
            self.logger.warning(
                "Rejected state transition",
                algorithm_id=state.algorithm_id,
                from_state=state.status.value,
                to_state=target.value,
                trigger=trigger,
            )
            raise StateTransitionError(
                f"Invalid state transition from {state.status.value} to {target.value}",
                current_state=state.status.value,
                attempted_transition=target.value,
                context={"algorithm_id": state.algorithm_id, "trigger": trigger},
            )

        new_state = state.with_status(target, timestamp=timestamp, error_message=error_message)
        log_state_transition(
            state_logger,
            algorithm_id=state.algorithm_id,
            from_state=state.status.value,
            to_state=target.value,
            trigger=trigger,
            context=context,
        )
        return new_state


# Global transition handler instance
transition_handler = StateTransitionHandler()
