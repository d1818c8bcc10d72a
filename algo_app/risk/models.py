"""Risk assessment and portfolio risk data models."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RiskAssessment:
    """Pre-execution risk scoring for one signal."""
    position_value: float
    exposure_percentage: float                       # existing + new notional over equity, percent
    drawdown_current: float                          # account drawdown, percent
    correlation_risk: float                          # 0-100
    liquidity_risk: float                            # 0-100
    market_impact: float                             # 0-100
    var_contribution: float                          # account currency
    stress_test_score: float                         # 0-100, higher is worse
    circuit_breaker_triggered: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "position_value": self.position_value,
            "exposure_percentage": self.exposure_percentage,
            "drawdown_current": self.drawdown_current,
            "correlation_risk": self.correlation_risk,
            "liquidity_risk": self.liquidity_risk,
            "market_impact": self.market_impact,
            "var_contribution": self.var_contribution,
            "stress_test_score": self.stress_test_score,
            "circuit_breaker_triggered": self.circuit_breaker_triggered,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'RiskAssessment':
        return cls(
            position_value=float(data["position_value"]),
            exposure_percentage=float(data["exposure_percentage"]),
            drawdown_current=float(data["drawdown_current"]),
            correlation_risk=float(data["correlation_risk"]),
            liquidity_risk=float(data["liquidity_risk"]),
            market_impact=float(data["market_impact"]),
            var_contribution=float(data["var_contribution"]),
            stress_test_score=float(data["stress_test_score"]),
            circuit_breaker_triggered=bool(data["circuit_breaker_triggered"]),
        )


@dataclass(frozen=True)
class PositionRisk:
    """Risk profile of one open position. Distances and drawdown are percentages."""
    position_id: str
    symbol: str
    exposure: float
    unrealized_pnl: float
    risk_percentage: float
    max_drawdown: float                              # |current-open|/open proxy, not peak-to-trough
    stop_loss_distance: float
    take_profit_distance: float
    correlation_risk: float                          # 0-100

    def to_dict(self) -> dict[str, Any]:
        return dict(self.__dict__)


@dataclass(frozen=True)
class DrawdownStatus:
    current_drawdown: float                          # percent
    max_drawdown: float                              # percent, highest observed
    breach: bool

    def to_dict(self) -> dict[str, Any]:
        return dict(self.__dict__)


@dataclass(frozen=True)
class CorrelationRisk:
    correlation_risk: float                          # average pairwise |corr| * 100
    breached: bool
    pairs_evaluated: int = 0


@dataclass(frozen=True)
class RiskMetrics:
    total_exposure: float
    margin_utilization: float                        # percent
    daily_pnl: float
    risk_score: float                                # 0-100, higher is riskier

    def to_dict(self) -> dict[str, Any]:
        return dict(self.__dict__)


@dataclass(frozen=True)
class EmergencyStopResult:
    """Aggregate outcome of a best-effort close-all."""
    closed_positions: int
    total_loss: float
    reason: str
    failed_tickets: tuple[int, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "closed_positions": self.closed_positions,
            "total_loss": self.total_loss,
            "reason": self.reason,
            "failed_tickets": list(self.failed_tickets),
        }


@dataclass(frozen=True)
class PositionLimits:
    """Limits applied by automatic stop placement."""
    max_position_size: float                         # fraction of equity per position
    max_single_trade_loss: float                     # percent of notional
