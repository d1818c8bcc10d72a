"""
State data models for algorithm instance lifecycle management.

AlgorithmState is immutable; the execution coordinator replaces the stored
value on every change so concurrent readers never observe a partial update.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..utils.time import format_timestamp, parse_timestamp, utc_now


class AlgorithmStatus(str, Enum):
    """Lifecycle status of a running algorithm instance."""
    IDLE = "idle"
    ANALYZING = "analyzing"
    SIGNALING = "signaling"
    EXECUTING = "executing"
    PAUSED = "paused"
    ERROR = "error"


IN_FLIGHT_STATUSES = frozenset({
    AlgorithmStatus.ANALYZING,
    AlgorithmStatus.SIGNALING,
    AlgorithmStatus.EXECUTING,
})

MAX_HEALTH = 100.0
MIN_HEALTH = 0.0


@dataclass(frozen=True)
class AlgorithmState:
    """Runtime state for a single algorithm instance."""

    algorithm_id: str
    status: AlgorithmStatus = AlgorithmStatus.IDLE

    # Position bookkeeping
    current_positions: int = 0
    pending_orders: int = 0

    health_score: float = MAX_HEALTH                 # 0-100

    # Cycle timestamps
    last_analysis_time: Optional[datetime] = None
    last_signal_time: Optional[datetime] = None
    last_execution_time: Optional[datetime] = None

    error_message: Optional[str] = None
    pause_requested: bool = False                    # Honored when the in-flight cycle completes
    metadata: dict[str, Any] = field(default_factory=dict)
    updated_at: Optional[datetime] = None

    @classmethod
    def initial(cls, algorithm_id: str, timestamp: Optional[datetime] = None) -> 'AlgorithmState':
        """Fresh idle state with full health."""
        return cls(algorithm_id=algorithm_id, updated_at=timestamp or utc_now())

    @property
    def in_flight(self) -> bool:
        return self.status in IN_FLIGHT_STATUSES

    def with_status(self, status: AlgorithmStatus,
                    timestamp: Optional[datetime] = None,
                    error_message: Optional[str] = None) -> 'AlgorithmState':
        """Create new state with updated status and the matching timestamp."""
        timestamp = timestamp or utc_now()
        kwargs: dict[str, Any] = {"status": status, "updated_at": timestamp}

        if status == AlgorithmStatus.ANALYZING:
            kwargs["last_analysis_time"] = timestamp
        elif status == AlgorithmStatus.SIGNALING:
            kwargs["last_signal_time"] = timestamp

        if status == AlgorithmStatus.ERROR:
            kwargs["error_message"] = error_message
        elif status in (AlgorithmStatus.ANALYZING, AlgorithmStatus.IDLE):
            kwargs["error_message"] = None

        if status == AlgorithmStatus.PAUSED:
            kwargs["pause_requested"] = False

        return replace(self, **kwargs)

    def with_health_delta(self, delta: float) -> 'AlgorithmState':
        """Adjust health score, clamped to [0, 100]."""
        health = min(MAX_HEALTH, max(MIN_HEALTH, self.health_score + delta))
        return replace(self, health_score=health)

    def with_position_opened(self, timestamp: Optional[datetime] = None, count: int = 1) -> 'AlgorithmState':
        """Record a successful execution."""
        timestamp = timestamp or utc_now()
        return replace(
            self,
            current_positions=self.current_positions + count,
            last_execution_time=timestamp,
            updated_at=timestamp,
        )

    def with_positions(self, current_positions: int) -> 'AlgorithmState':
        """Replace the open position count, e.g. after reconciling with the gateway."""
        return replace(self, current_positions=max(0, current_positions))

    def with_pause_requested(self, requested: bool = True) -> 'AlgorithmState':
        return replace(self, pause_requested=requested)

    def with_metadata(self, **values: Any) -> 'AlgorithmState':
        merged = dict(self.metadata)
        merged.update(values)
        return replace(self, metadata=merged)

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm_id": self.algorithm_id,
            "status": self.status.value,
            "current_positions": self.current_positions,
            "pending_orders": self.pending_orders,
            "health_score": self.health_score,
            "last_analysis_time": format_timestamp(self.last_analysis_time),
            "last_signal_time": format_timestamp(self.last_signal_time),
            "last_execution_time": format_timestamp(self.last_execution_time),
            "error_message": self.error_message,
            "pause_requested": self.pause_requested,
            "metadata": dict(self.metadata),
            "updated_at": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'AlgorithmState':
        return cls(
            algorithm_id=data["algorithm_id"],
            status=AlgorithmStatus(data.get("status", AlgorithmStatus.IDLE.value)),
            current_positions=int(data.get("current_positions", 0)),
            pending_orders=int(data.get("pending_orders", 0)),
            health_score=float(data.get("health_score", MAX_HEALTH)),
            last_analysis_time=parse_timestamp(data.get("last_analysis_time")),
            last_signal_time=parse_timestamp(data.get("last_signal_time")),
            last_execution_time=parse_timestamp(data.get("last_execution_time")),
            error_message=data.get("error_message"),
            pause_requested=bool(data.get("pause_requested", False)),
            metadata=dict(data.get("metadata") or {}),
            updated_at=parse_timestamp(data.get("updated_at")),
        )
