"""Request, record and report models of the execution coordinator."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..backtest.models import PerformanceMetrics
from ..utils.time import format_timestamp, parse_timestamp

OPTIMIZATION_TARGETS = ("return", "sharpe_ratio", "win_rate", "drawdown_minimization")


class CycleOutcome(str, Enum):
    """How one execution cycle ended."""
    QUEUED = "queued"
    EXECUTED = "executed"
    NO_SIGNAL = "no_signal"
    REJECTED = "rejected"                            # strategy validation
    RISK_REJECTED = "risk_rejected"                  # risk limit breached
    DATA_UNAVAILABLE = "data_unavailable"
    FAILED = "failed"
    SKIPPED = "skipped"                              # paused or deactivated before the cycle ran


@dataclass(frozen=True)
class ExecutionRequest:
    algorithm_id: str
    user_id: Optional[str] = None


@dataclass(frozen=True)
class ExecutionResponse:
    """Immediate acknowledgement of a queued cycle."""
    execution_id: str
    status: str = "queued"
    message: str = ""
    estimated_completion: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "status": self.status,
            "message": self.message,
            "estimated_completion": format_timestamp(self.estimated_completion),
        }


@dataclass(frozen=True)
class CycleResult:
    """Execution record stored per execution id."""
    execution_id: str
    algorithm_id: str
    outcome: CycleOutcome
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    message: str = ""
    signal: Optional[dict[str, Any]] = None
    tickets: tuple[int, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "algorithm_id": self.algorithm_id,
            "outcome": self.outcome.value,
            "started_at": format_timestamp(self.started_at),
            "completed_at": format_timestamp(self.completed_at),
            "message": self.message,
            "signal": self.signal,
            "tickets": list(self.tickets),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'CycleResult':
        return cls(
            execution_id=data["execution_id"],
            algorithm_id=data["algorithm_id"],
            outcome=CycleOutcome(data["outcome"]),
            started_at=parse_timestamp(data.get("started_at")),
            completed_at=parse_timestamp(data.get("completed_at")),
            message=data.get("message", ""),
            signal=data.get("signal"),
            tickets=tuple(data.get("tickets") or ()),
        )


@dataclass(frozen=True)
class StressScenario:
    name: str
    price_shock: float                               # fraction of notional
    probability: float


DEFAULT_STRESS_SCENARIOS = (
    StressScenario("high_volatility", 0.05, 0.1),
    StressScenario("flash_crash", 0.10, 0.01),
    StressScenario("liquidity_dry_up", 0.03, 0.05),
)


@dataclass(frozen=True)
class StressTestResult:
    scenario: str
    price_shock: float
    probability: float
    estimated_loss: float
    loss_percentage: float                           # of equity

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario": self.scenario,
            "price_shock": self.price_shock,
            "probability": self.probability,
            "estimated_loss": self.estimated_loss,
            "loss_percentage": self.loss_percentage,
        }


@dataclass(frozen=True)
class RiskReport:
    """Deterministic risk summary of an algorithm and the account it trades."""
    algorithm_id: str
    generated_at: datetime
    overall_risk_score: float                        # 0-100
    risk_factors: dict[str, float]
    value_at_risk: dict[str, float]                  # daily, weekly, monthly
    stress_tests: tuple[StressTestResult, ...]
    recommendations: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm_id": self.algorithm_id,
            "generated_at": format_timestamp(self.generated_at),
            "overall_risk_score": self.overall_risk_score,
            "risk_factors": dict(self.risk_factors),
            "value_at_risk": dict(self.value_at_risk),
            "stress_tests": [result.to_dict() for result in self.stress_tests],
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class OptimizationRequest:
    """
    Grid search request.

    parameter_ranges maps dotted parameter paths (e.g. "rsi_filter.overbought_level")
    to candidate values. Constraints are fractions like the performance metrics:
    max_drawdown_limit and min_return_target.
    """
    algorithm_id: str
    parameter_ranges: dict[str, list[Any]]
    target: str = "sharpe_ratio"
    constraints: dict[str, float] = field(default_factory=dict)
    history_limit: int = 500


@dataclass(frozen=True)
class CandidateScore:
    parameters: dict[str, Any]
    score: float
    metrics: PerformanceMetrics

    def to_dict(self) -> dict[str, Any]:
        return {
            "parameters": dict(self.parameters),
            "score": self.score,
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class OptimizationResult:
    algorithm_id: str
    target: str
    best_parameters: dict[str, Any]
    best_score: Optional[float]
    best_metrics: Optional[PerformanceMetrics]
    evaluated: int
    rejected: int
    candidates: tuple[CandidateScore, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm_id": self.algorithm_id,
            "target": self.target,
            "best_parameters": dict(self.best_parameters),
            "best_score": self.best_score,
            "best_metrics": self.best_metrics.to_dict() if self.best_metrics else None,
            "evaluated": self.evaluated,
            "rejected": self.rejected,
            "candidates": [candidate.to_dict() for candidate in self.candidates],
        }
