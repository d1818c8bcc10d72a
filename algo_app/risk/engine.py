"""
Account and portfolio risk engine.

Scores open positions, tracks account drawdown, checks correlation
concentration, places automatic stops and runs the best-effort emergency
close-all. Gateway reads are the only suspension points.
"""

from collections.abc import Sequence
from dataclasses import asdict
from typing import TYPE_CHECKING, Optional

import structlog

from ..config.defaults import RiskEngineParams
from ..data.models import AccountInfo, MarketAnalysis, Position
from ..errors import RiskLimitExceeded
from ..gateways.base import ExecutionGateway
from ..logging.config import get_risk_logger, log_risk_decision
from ..persistence.config_store import ConfigStore
from .assessment import account_drawdown_pct, account_equity, assess_signal_risk, z_score_for
from .correlation import CorrelationTable
from .models import (
    CorrelationRisk,
    DrawdownStatus,
    EmergencyStopResult,
    PositionLimits,
    PositionRisk,
    RiskAssessment,
    RiskMetrics,
)

if TYPE_CHECKING:
    from ..strategies.models import RiskLimits

logger = structlog.get_logger(__name__)
risk_logger = get_risk_logger(__name__)


class RiskEngine:
    """Position- and portfolio-level risk checks for one trading account."""

    def __init__(
        self,
        gateway: ExecutionGateway,
        store: ConfigStore,
        correlation_table: Optional[CorrelationTable] = None,
        params: Optional[RiskEngineParams] = None,
        account_id: str = "default"
    ):
        self.gateway = gateway
        self.store = store
        self.correlation_table = correlation_table or CorrelationTable.default()
        self.params = params or RiskEngineParams()
        self.account_id = account_id
        self.logger = logger

    def _key(self, name: str) -> str:
        return f"{name}:{self.account_id}"

    def _position_risk(self, position: Position, equity: float, held_symbols: Sequence[str]) -> PositionRisk:
        exposure = position.volume * position.price_open
        current = position.price_current

        stop_distance = abs(current - position.sl) / current * 100.0 if position.sl > 0 and current > 0 else 0.0
        take_distance = abs(current - position.tp) / current * 100.0 if position.tp > 0 and current > 0 else 0.0
        drawdown_proxy = (
            abs(current - position.price_open) / position.price_open * 100.0 if position.price_open > 0 else 0.0
        )

        return PositionRisk(
            position_id=str(position.ticket),
            symbol=position.symbol,
            exposure=exposure,
            unrealized_pnl=position.profit,
            risk_percentage=exposure / equity * 100.0,
            max_drawdown=drawdown_proxy,
            stop_loss_distance=stop_distance,
            take_profit_distance=take_distance,
            correlation_risk=self.correlation_table.exposure_to(position.symbol, held_symbols) * 100.0,
        )

    async def calculate_portfolio_risk(self) -> list[PositionRisk]:
        """Risk profile of every open position."""
        positions = await self.gateway.get_positions()
        if not positions:
            return []

        account = await self.gateway.get_account_info()
        equity = account_equity(account, self.params.default_equity)
        held = [p.symbol for p in positions]
        return [self._position_risk(position, equity, held) for position in positions]

    async def monitor_drawdown(self) -> DrawdownStatus:
        """
        Account drawdown with the highest value observed so far.

        Breach is current drawdown strictly above the configured percentage.
        The result is cached for drawdown_cache_ttl seconds.
        """
        cached = self.store.get(self._key("drawdown"))
        if cached is not None:
            return DrawdownStatus(**cached)

        account = await self.gateway.get_account_info()
        current = account_drawdown_pct(account)

        historical = self.store.get(self._key("max_drawdown")) or 0.0
        max_drawdown = max(current, float(historical))
        self.store.set(self._key("max_drawdown"), max_drawdown)

        breach = current > self.params.drawdown_breach_pct
        status = DrawdownStatus(current_drawdown=current, max_drawdown=max_drawdown, breach=breach)
        self.store.set(self._key("drawdown"), status.to_dict(), ttl=self.params.drawdown_cache_ttl)

        log_risk_decision(
            risk_logger, "drawdown", passed=not breach, subject_id=self.account_id,
            reason=f"drawdown {current:.2f}% vs {self.params.drawdown_breach_pct}%",
        )
        return status

    def check_correlation_risk(self, positions: Sequence[Position]) -> CorrelationRisk:
        """Average pairwise |correlation| across distinct held symbols; breach strictly above the threshold."""
        if len(positions) < 2:
            return CorrelationRisk(correlation_risk=0.0, breached=False, pairs_evaluated=0)

        average, pairs = self.correlation_table.average_absolute(p.symbol for p in positions)
        correlation_risk = average * 100.0
        breached = correlation_risk > self.params.correlation_breach_pct

        log_risk_decision(
            risk_logger, "correlation", passed=not breached, subject_id=self.account_id,
            reason=f"correlation {correlation_risk:.1f} vs {self.params.correlation_breach_pct}",
        )
        return CorrelationRisk(correlation_risk=correlation_risk, breached=breached, pairs_evaluated=pairs)

    def stop_levels(self, position: Position, max_single_trade_loss: float) -> tuple[float, float]:
        """
        Stop-loss from the loss budget and take-profit at the reward:risk ratio.

        Returns:
            (stop_loss, take_profit) prices
        """
        distance = position.price_open * max_single_trade_loss / 100.0
        direction = position.side.direction
        stop_loss = position.price_open - distance * direction
        take_profit = position.price_open + distance * self.params.reward_risk_ratio * direction
        return stop_loss, take_profit

    async def apply_auto_stops(self, position: Position, limits: PositionLimits) -> bool:
        """
        Place protective stops on an oversized position.

        Returns:
            True when stops were applied; False when the position is within
            limits or the gateway failed
        """
        try:
            account = await self.gateway.get_account_info()
            equity = account_equity(account, self.params.default_equity)
            risk_pct = position.volume * position.price_open / equity * 100.0

            if risk_pct <= limits.max_position_size * 100.0:
                return False

            stop_loss, take_profit = self.stop_levels(position, limits.max_single_trade_loss)
            result = await self.gateway.modify_position(position.ticket, sl=stop_loss, tp=take_profit)
        except Exception as e:
            self.logger.error("Failed to apply auto stops", ticket=position.ticket, error=str(e))
            return False

        self.logger.info(
            "Auto stops applied",
            ticket=position.ticket,
            risk_percentage=risk_pct,
            stop_loss=stop_loss,
            take_profit=take_profit,
            success=result.success,
        )
        return result.success

    def calculate_var(self, positions: Sequence[Position], confidence: float = 0.95) -> float:
        """Parametric VaR: Σ notional · daily volatility · z(confidence), no covariance."""
        z = z_score_for(confidence)
        return sum(
            p.volume * p.price_open * self.params.assumed_daily_volatility * z
            for p in positions
        )

    async def get_risk_metrics(self) -> RiskMetrics:
        """Exposure, margin utilisation, daily P&L and a composite 0-100 risk score."""
        cached = self.store.get(self._key("risk_metrics"))
        if cached is not None:
            return RiskMetrics(**cached)

        positions = await self.gateway.get_positions()
        account = await self.gateway.get_account_info()
        equity = account_equity(account, self.params.default_equity)

        total_exposure = sum(p.volume * p.price_open for p in positions)
        margin_utilization = account.margin / equity * 100.0 if account.margin > 0 else 0.0
        drawdown = await self.monitor_drawdown()

        exposure_risk = min(total_exposure / equity * 50.0, 50.0)
        margin_risk = min(margin_utilization * 0.5, 25.0)
        drawdown_risk = min(max(drawdown.current_drawdown, 0.0) * 2.0, 25.0)

        metrics = RiskMetrics(
            total_exposure=total_exposure,
            margin_utilization=margin_utilization,
            daily_pnl=account.profit,
            risk_score=exposure_risk + margin_risk + drawdown_risk,
        )
        self.store.set(self._key("risk_metrics"), metrics.to_dict(), ttl=self.params.metrics_cache_ttl)
        return metrics

    async def emergency_stop(self, reason: str) -> EmergencyStopResult:
        """
        Close every open position, continuing past individual failures.

        total_loss sums the profit of successfully closed positions at the
        time of closing (negative for losses).
        """
        self.logger.warning("Emergency stop triggered", account_id=self.account_id, reason=reason)

        positions = await self.gateway.get_positions()
        closed = 0
        total_loss = 0.0
        failed: list[int] = []

        for position in positions:
            try:
                result = await self.gateway.close_position(position.ticket)
            except Exception as e:
                self.logger.error("Failed to close position", ticket=position.ticket, error=str(e))
                failed.append(position.ticket)
                continue

            if result.success:
                closed += 1
                total_loss += result.profit if result.profit is not None else position.profit
            else:
                failed.append(position.ticket)

        self.store.delete(self._key("risk_metrics"))
        self.store.delete(self._key("drawdown"))

        self.logger.warning(
            "Emergency stop completed",
            closed_positions=closed,
            failed_positions=len(failed),
            total_loss=total_loss,
        )
        return EmergencyStopResult(
            closed_positions=closed,
            total_loss=total_loss,
            reason=reason,
            failed_tickets=tuple(failed),
        )

    def assess_signal(
        self,
        symbol: str,
        volume: float,
        entry_price: float,
        account: Optional[AccountInfo],
        positions: Sequence[Position],
        risk_limits: "RiskLimits",
        market_analysis: Optional[MarketAnalysis] = None
    ) -> RiskAssessment:
        """Deterministic risk assessment of a prospective position."""
        return assess_signal_risk(
            symbol=symbol,
            volume=volume,
            entry_price=entry_price,
            account=account,
            positions=positions,
            risk_limits=risk_limits,
            correlation_table=self.correlation_table,
            market_analysis=market_analysis,
            params=self.params,
        )

    def enforce_limits(self, assessment: RiskAssessment, risk_limits: "RiskLimits", subject_id: str = "") -> None:
        """
        Reject an assessment that breaches a configured limit.

        Raises:
            RiskLimitExceeded: circuit breaker, VaR, correlation or drawdown limit breached
        """
        checks = (
            ("circuit_breaker", assessment.circuit_breaker_triggered,
             assessment.exposure_percentage, risk_limits.circuit_breaker_threshold),
            ("var_limit", assessment.var_contribution > risk_limits.var_limit,
             assessment.var_contribution, risk_limits.var_limit),
            ("max_correlation_exposure", assessment.correlation_risk > risk_limits.max_correlation_exposure,
             assessment.correlation_risk, risk_limits.max_correlation_exposure),
            ("max_drawdown", assessment.drawdown_current > risk_limits.max_drawdown,
             assessment.drawdown_current, risk_limits.max_drawdown),
        )

        for name, breached, value, threshold in checks:
            if breached:
                log_risk_decision(
                    risk_logger, name, passed=False, subject_id=subject_id,
                    reason=f"{value:.4f} exceeds {threshold}",
                    context={"assessment": asdict(assessment)},
                )
                raise RiskLimitExceeded(
                    f"Risk limit {name} exceeded: {value:.4f} > {threshold}",
                    limit_name=name,
                    value=value,
                    threshold=threshold,
                    context={"subject_id": subject_id},
                )

        log_risk_decision(risk_logger, "pre_trade", passed=True, subject_id=subject_id, reason="within limits")
