"""
Execution coordination for live algorithm instances.
"""

from .coordinator import AlgorithmExecutionCoordinator
from .models import (
    DEFAULT_STRESS_SCENARIOS,
    OPTIMIZATION_TARGETS,
    CandidateScore,
    CycleOutcome,
    CycleResult,
    ExecutionRequest,
    ExecutionResponse,
    OptimizationRequest,
    OptimizationResult,
    RiskReport,
    StressScenario,
    StressTestResult,
)

__all__ = [
    "DEFAULT_STRESS_SCENARIOS",
    "OPTIMIZATION_TARGETS",
    "AlgorithmExecutionCoordinator",
    "CandidateScore",
    "CycleOutcome",
    "CycleResult",
    "ExecutionRequest",
    "ExecutionResponse",
    "OptimizationRequest",
    "OptimizationResult",
    "RiskReport",
    "StressScenario",
    "StressTestResult",
]
