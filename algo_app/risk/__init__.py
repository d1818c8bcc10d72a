"""
Risk engine: exposure, drawdown, correlation and value-at-risk checks,
automatic stops and the emergency close-all.
"""

from .assessment import assess_signal_risk, z_score_for
from .correlation import DEFAULT_FX_CORRELATIONS, CorrelationTable
from .engine import RiskEngine
from .models import (
    CorrelationRisk,
    DrawdownStatus,
    EmergencyStopResult,
    PositionLimits,
    PositionRisk,
    RiskAssessment,
    RiskMetrics,
)

__all__ = [
    "DEFAULT_FX_CORRELATIONS",
    "CorrelationRisk",
    "CorrelationTable",
    "DrawdownStatus",
    "EmergencyStopResult",
    "PositionLimits",
    "PositionRisk",
    "RiskAssessment",
    "RiskEngine",
    "RiskMetrics",
    "assess_signal_risk",
    "z_score_for",
]
