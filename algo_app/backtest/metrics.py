"""
Post-pass performance, trade, drawdown and risk metrics.

Sharpe and Sortino use a fixed annualization constant (252) regardless of
bar timeframe.
"""

import math
from collections.abc import Sequence
from typing import Optional

from ..indicators.statistics import mean, population_stddev
from .models import (
    BacktestTrade,
    DrawdownAnalysis,
    EquityPoint,
    PerformanceMetrics,
    RiskAnalysis,
    TradeStatistics,
)

ANNUALIZATION_FACTOR = 252
KELLY_CAP = 0.25
DAYS_PER_YEAR = 365.0


def period_returns(equity_curve: Sequence[EquityPoint], initial_balance: float) -> list[float]:
    """Simple returns between consecutive equity points, starting from the initial balance."""
    values = [initial_balance] + [point.equity for point in equity_curve]
    return [
        (values[i] - values[i - 1]) / values[i - 1]
        for i in range(1, len(values))
        if values[i - 1] != 0
    ]


def downside_deviation(returns: Sequence[float], target: float = 0.0) -> float:
    """Root mean square of shortfalls below target across all periods."""
    if not returns:
        return 0.0
    return math.sqrt(sum(min(r - target, 0.0) ** 2 for r in returns) / len(returns))


def sharpe_ratio(returns: Sequence[float], annualization: int = ANNUALIZATION_FACTOR) -> float:
    std = population_stddev(returns)
    if std == 0:
        return 0.0
    return mean(returns) / std * math.sqrt(annualization)


def sortino_ratio(returns: Sequence[float], annualization: int = ANNUALIZATION_FACTOR) -> float:
    deviation = downside_deviation(returns)
    if deviation == 0:
        return 0.0
    return mean(returns) / deviation * math.sqrt(annualization)


def profit_factor(trades: Sequence[BacktestTrade]) -> float:
    """
    Gross winnings over gross losses.

    +inf when there are winners and no losers. 0.0 when there are neither,
    which covers an empty trade list and one where every trade broke even.
    """
    closed = [t for t in trades if t.profit_loss is not None]
    gross_win = sum(t.profit_loss for t in closed if t.profit_loss > 0)
    gross_loss = abs(sum(t.profit_loss for t in closed if t.profit_loss < 0))

    if gross_loss == 0:
        return math.inf if gross_win > 0 else 0.0
    return gross_win / gross_loss


def annualized_return(total_return: float, elapsed_days: float) -> float:
    """Compound the total return to a yearly rate over the elapsed calendar days."""
    if elapsed_days <= 0:
        return 0.0
    growth = 1.0 + total_return
    if growth <= 0:
        return -1.0
    return growth ** (DAYS_PER_YEAR / elapsed_days) - 1.0


def calculate_trade_statistics(trades: Sequence[BacktestTrade]) -> TradeStatistics:
    """Summary statistics over closed trades."""
    closed = [t for t in trades if t.profit_loss is not None]
    if not closed:
        return TradeStatistics()

    wins = [t.profit_loss for t in closed if t.profit_loss > 0]
    losses = [t.profit_loss for t in closed if t.profit_loss < 0]

    average_win = mean(wins)
    average_loss = mean(losses)
    win_loss_ratio = average_win / abs(average_loss) if average_loss else 0.0

    kelly = 0.0
    if wins and losses and win_loss_ratio > 0:
        win_rate = len(wins) / len(closed)
        kelly = (win_rate * win_loss_ratio - (1.0 - win_rate)) / win_loss_ratio
        kelly = min(max(kelly, 0.0), KELLY_CAP)

    return TradeStatistics(
        total_trades=len(closed),
        winning_trades=len(wins),
        losing_trades=len(losses),
        average_win=average_win,
        average_loss=average_loss,
        largest_win=max(wins, default=0.0),
        largest_loss=min(losses, default=0.0),
        expectancy=mean([t.profit_loss for t in closed]),
        win_loss_ratio=win_loss_ratio,
        kelly_percentage=kelly,
        total_commission=sum(t.commission for t in closed),
    )


def analyze_drawdowns(equity_curve: Sequence[EquityPoint], initial_balance: float) -> DrawdownAnalysis:
    """
    Walk the equity curve and split it into drawdown episodes.

    An episode starts when equity falls below the running peak and ends when
    equity regains it. Durations and recovery are measured in bars.
    """
    peak = initial_balance
    max_drawdown = 0.0
    depths: list[float] = []
    longest = 0
    recovery_time: Optional[int] = None

    in_drawdown = False
    episode_depth = 0.0
    episode_length = 0
    trough_index = 0
    deepest_episode_depth = 0.0
    current = 0.0

    for i, point in enumerate(equity_curve):
        if point.equity >= peak:
            if in_drawdown:
                depths.append(episode_depth)
                longest = max(longest, episode_length)
                if episode_depth >= deepest_episode_depth:
                    deepest_episode_depth = episode_depth
                    recovery_time = i - trough_index
                in_drawdown = False
            peak = point.equity
            current = 0.0
            continue

        drawdown = (peak - point.equity) / peak if peak > 0 else 0.0
        current = drawdown
        max_drawdown = max(max_drawdown, drawdown)

        if not in_drawdown:
            in_drawdown = True
            episode_depth = 0.0
            episode_length = 0
        episode_length += 1
        if drawdown > episode_depth:
            episode_depth = drawdown
            trough_index = i

    if in_drawdown:
        depths.append(episode_depth)
        longest = max(longest, episode_length)
        if episode_depth > deepest_episode_depth:
            recovery_time = None

    return DrawdownAnalysis(
        max_drawdown=max_drawdown,
        average_drawdown=mean(depths),
        max_drawdown_duration=longest,
        recovery_time=recovery_time,
        drawdown_periods=len(depths),
        current_drawdown=current,
    )


def historical_var(returns: Sequence[float], equity: float, confidence: float = 0.95) -> tuple[float, float]:
    """
    Historical value-at-risk and expected shortfall on period returns.

    Returns:
        (VaR, expected shortfall) as positive currency losses, 0.0 when the
        tail holds no losses
    """
    if not returns:
        return 0.0, 0.0

    ordered = sorted(returns)
    cutoff = max(0, min(len(ordered) - 1, int(math.floor((1.0 - confidence) * len(ordered)))))
    threshold = ordered[cutoff]
    tail = ordered[:cutoff + 1]

    var = max(0.0, -threshold) * equity
    shortfall = max(0.0, -mean(tail)) * equity
    return var, shortfall


def calculate_risk_analysis(returns: Sequence[float], equity: float, confidence: float = 0.95) -> RiskAnalysis:
    var, shortfall = historical_var(returns, equity, confidence)
    return RiskAnalysis(
        value_at_risk=var,
        expected_shortfall=shortfall,
        confidence=confidence,
        return_volatility=population_stddev(returns),
        downside_deviation=downside_deviation(returns),
    )


def calculate_performance(
    trades: Sequence[BacktestTrade],
    equity_curve: Sequence[EquityPoint],
    initial_balance: float,
    max_drawdown: float,
    annualization: int = ANNUALIZATION_FACTOR
) -> PerformanceMetrics:
    """Headline metrics for a completed pass."""
    final_equity = equity_curve[-1].equity if equity_curve else initial_balance
    total_return = (final_equity - initial_balance) / initial_balance if initial_balance else 0.0

    closed = [t for t in trades if t.profit_loss is not None]
    winners = [t for t in closed if t.profit_loss > 0]
    win_rate = len(winners) / len(closed) if closed else 0.0

    returns = period_returns(equity_curve, initial_balance)

    elapsed_days = 0.0
    if len(equity_curve) >= 2:
        elapsed_days = (equity_curve[-1].timestamp - equity_curve[0].timestamp).total_seconds() / 86400.0

    # Deepest currency decline from a running peak
    peak = initial_balance
    max_decline = 0.0
    for point in equity_curve:
        peak = max(peak, point.equity)
        max_decline = max(max_decline, peak - point.equity)

    return PerformanceMetrics(
        total_return=total_return,
        annualized_return=annualized_return(total_return, elapsed_days),
        max_drawdown=max_drawdown,
        sharpe_ratio=sharpe_ratio(returns, annualization),
        sortino_ratio=sortino_ratio(returns, annualization),
        win_rate=win_rate,
        profit_factor=profit_factor(closed),
        calmar_ratio=total_return / max_drawdown if max_drawdown > 0 else 0.0,
        recovery_factor=(final_equity - initial_balance) / max_decline if max_decline > 0 else 0.0,
        final_equity=final_equity,
    )
