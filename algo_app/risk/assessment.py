"""
Deterministic pre-execution risk scoring for a single signal.

Every score is derived from the account snapshot, open positions, the
correlation table and the market analysis. Identical inputs always give
identical assessments.
"""

from collections.abc import Sequence
from statistics import NormalDist
from typing import TYPE_CHECKING, Optional

from ..config.defaults import RiskEngineParams
from ..data.models import AccountInfo, MarketAnalysis, Position
from .correlation import CorrelationTable
from .models import RiskAssessment

if TYPE_CHECKING:
    from ..strategies.models import RiskLimits

NEUTRAL_LIQUIDITY_RISK = 50.0
_Z_SCORES = {0.95: 1.645, 0.99: 2.326}


def z_score_for(confidence: float) -> float:
    """One-sided normal quantile, using the conventional table values for 95% and 99%."""
    if confidence in _Z_SCORES:
        return _Z_SCORES[confidence]
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be within (0, 1), got {confidence}")
    return NormalDist().inv_cdf(confidence)


def account_equity(account: Optional[AccountInfo], default_equity: float) -> float:
    if account is None or account.equity <= 0:
        return default_equity
    return account.equity


def account_drawdown_pct(account: Optional[AccountInfo]) -> float:
    """(balance - equity) / balance as a percentage, 0.0 when equity is above balance."""
    if account is None or account.balance <= 0:
        return 0.0
    return max(0.0, (account.balance - account.equity) / account.balance * 100.0)


def assess_signal_risk(
    symbol: str,
    volume: float,
    entry_price: float,
    account: Optional[AccountInfo],
    positions: Sequence[Position],
    risk_limits: "RiskLimits",
    correlation_table: CorrelationTable,
    market_analysis: Optional[MarketAnalysis] = None,
    params: Optional[RiskEngineParams] = None,
    confidence: float = 0.95
) -> RiskAssessment:
    """
    Score a prospective position against the current portfolio.

    Args:
        symbol: Symbol to trade
        volume: Position size
        entry_price: Expected fill price
        account: Account snapshot (default equity is assumed when missing)
        positions: Currently open positions
        risk_limits: Limits of the owning algorithm
        correlation_table: Pairwise symbol correlations
        market_analysis: Liquidity and volume context, optional
        params: Risk engine parameters
        confidence: VaR confidence level

    Returns:
        RiskAssessment; circuit_breaker_triggered is exactly
        exposure_percentage > circuit_breaker_threshold
    """
    params = params or RiskEngineParams()
    equity = account_equity(account, params.default_equity)

    position_value = abs(volume) * entry_price
    existing = sum(p.notional for p in positions)
    exposure_pct = (existing + position_value) / equity * 100.0

    correlation_risk = correlation_table.exposure_to(symbol, [p.symbol for p in positions]) * 100.0

    liquidity_risk = NEUTRAL_LIQUIDITY_RISK
    market_impact = 0.0
    if market_analysis is not None:
        liquidity_risk = max(0.0, 100.0 - market_analysis.liquidity_score)
        if market_analysis.volume > 0:
            market_impact = min(100.0, abs(volume) / market_analysis.volume * 100.0)

    var_contribution = position_value * params.assumed_daily_volatility * z_score_for(confidence)

    stress_loss = (existing + position_value) * risk_limits.stress_test_threshold / 100.0
    stress_test_score = min(100.0, stress_loss / equity * 100.0)

    return RiskAssessment(
        position_value=position_value,
        exposure_percentage=exposure_pct,
        drawdown_current=account_drawdown_pct(account),
        correlation_risk=correlation_risk,
        liquidity_risk=liquidity_risk,
        market_impact=market_impact,
        var_contribution=var_contribution,
        stress_test_score=stress_test_score,
        circuit_breaker_triggered=exposure_pct > risk_limits.circuit_breaker_threshold,
    )
