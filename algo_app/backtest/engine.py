"""
Deterministic historical backtest engine.

One sequential pass over ascending bars with at most one open position.
Runs are synchronous and keep all mutable state local, so many runs may
execute in parallel threads.
"""

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog

from ..config.defaults import BacktestParams
from ..data.models import OHLCBar, OrderSide
from ..data.validators import prepare_bars
from ..errors import InsufficientDataError
from .metrics import (
    analyze_drawdowns,
    calculate_performance,
    calculate_risk_analysis,
    calculate_trade_statistics,
    period_returns,
)
from .models import BacktestRequest, BacktestResult, BacktestTrade, DrawdownPoint, EquityPoint, StrategyConfig
from .rules import build_indicator_frame, evaluate_entry, evaluate_exit

logger = structlog.get_logger(__name__)

PIP_DIVISOR = 10000.0


@dataclass
class _OpenPosition:
    side: OrderSide
    entry_price: float
    entry_time: datetime
    size: float
    reason: str


class BacktestEngine:
    """Replays an OHLC series against a StrategyConfig."""

    def __init__(self, params: Optional[BacktestParams] = None):
        self.params = params or BacktestParams()
        self.logger = logger

    def position_size(self, equity: float, price: float, strategy: StrategyConfig) -> float:
        """
        Units to trade.

        percentage: risk equity * risk_per_trade over a stop_loss move from price.
        fixed: the configured fixed size.
        """
        if strategy.position_sizing == "fixed":
            return strategy.fixed_size

        stop_distance = price * strategy.stop_loss
        if stop_distance <= 0:
            return 0.0
        return equity * strategy.risk_per_trade / stop_distance

    def run(self, request: BacktestRequest) -> BacktestResult:
        """
        Execute one backtest.

        Raises:
            InsufficientDataError: empty series or shorter than the longest indicator period
            MalformedDataError: duplicate timestamps or inconsistent OHLC values
        """
        strategy = request.strategy
        required = strategy.required_history()

        if not request.bars or len(request.bars) < required:
            raise InsufficientDataError(
                f"Backtest needs at least {required} bars, got {len(request.bars)}",
                required_count=required,
                available_count=len(request.bars),
            )

        bars = prepare_bars(list(request.bars))
        symbol = request.symbol or bars[0].symbol
        frame = build_indicator_frame(bars, strategy)

        equity = request.initial_balance
        peak = request.initial_balance
        max_drawdown = 0.0
        position: Optional[_OpenPosition] = None

        trades: list[BacktestTrade] = []
        equity_curve: list[EquityPoint] = []
        drawdown_curve: list[DrawdownPoint] = []

        for i, bar in enumerate(bars):
            spread_cost = request.spread / PIP_DIVISOR * bar.close

            if position is None:
                decision = evaluate_entry(frame, i, strategy)
                if decision is not None:
                    entry_price = bar.close + spread_cost * decision.side.direction
                    size = self.position_size(equity, bar.close, strategy)
                    if size > 0:
                        position = _OpenPosition(
                            side=decision.side,
                            entry_price=entry_price,
                            entry_time=bar.timestamp,
                            size=size,
                            reason=decision.reason,
                        )
            else:
                reason = evaluate_exit(frame, i, strategy, position.side, position.entry_price, bar.close)
                if reason is not None:
                    exit_price = bar.close - spread_cost * position.side.direction
                    gross = (exit_price - position.entry_price) * position.size * position.side.direction
                    commission = request.commission * abs(position.size) / self.params.lot_size
                    net = gross - commission

                    trades.append(BacktestTrade(
                        symbol=symbol,
                        side=position.side,
                        quantity=position.size,
                        entry_price=position.entry_price,
                        entry_time=position.entry_time,
                        entry_reason=position.reason,
                        exit_price=exit_price,
                        exit_time=bar.timestamp,
                        profit_loss=net,
                        commission=commission,
                        exit_reason=reason,
                    ))
                    equity += net
                    position = None

            peak = max(peak, equity)
            drawdown = (peak - equity) / peak if peak > 0 else 0.0
            max_drawdown = max(max_drawdown, drawdown)

            equity_curve.append(EquityPoint(timestamp=bar.timestamp, equity=equity))
            drawdown_curve.append(DrawdownPoint(timestamp=bar.timestamp, drawdown=drawdown, max_drawdown=max_drawdown))

        open_trade = None
        if position is not None:
            open_trade = BacktestTrade(
                symbol=symbol,
                side=position.side,
                quantity=position.size,
                entry_price=position.entry_price,
                entry_time=position.entry_time,
                entry_reason=position.reason,
            )
            trades.append(open_trade)

        result = build_result(
            strategy_id=request.strategy_id,
            symbol=symbol,
            bars=bars,
            initial_balance=request.initial_balance,
            trades=trades,
            equity_curve=equity_curve,
            drawdown_curve=drawdown_curve,
            max_drawdown=max_drawdown,
            open_trade=open_trade,
            params=self.params,
        )

        self.logger.info(
            "Backtest completed",
            strategy_id=request.strategy_id,
            symbol=symbol,
            bars=len(bars),
            trades=len(result.closed_trades),
            total_return=result.performance_metrics.total_return,
            max_drawdown=max_drawdown,
        )
        return result

    def run_many(self, requests: Sequence[BacktestRequest], max_workers: int = 4) -> list[BacktestResult]:
        """Run independent backtests on a thread pool; results keep request order."""
        if not requests:
            return []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(self.run, requests))


def build_result(
    strategy_id: Optional[str],
    symbol: str,
    bars: Sequence[OHLCBar],
    initial_balance: float,
    trades: list[BacktestTrade],
    equity_curve: list[EquityPoint],
    drawdown_curve: list[DrawdownPoint],
    max_drawdown: float,
    open_trade: Optional[BacktestTrade],
    params: BacktestParams
) -> BacktestResult:
    """Post-pass metrics over the accumulated trades and equity curve."""
    final_equity = equity_curve[-1].equity if equity_curve else initial_balance
    returns = period_returns(equity_curve, initial_balance)

    return BacktestResult(
        strategy_id=strategy_id,
        symbol=symbol,
        period_start=bars[0].timestamp,
        period_end=bars[-1].timestamp,
        initial_balance=initial_balance,
        performance_metrics=calculate_performance(
            trades, equity_curve, initial_balance, max_drawdown, params.annualization_factor
        ),
        trade_statistics=calculate_trade_statistics(trades),
        trade_log=tuple(trades),
        equity_curve=tuple(equity_curve),
        drawdown_curve=tuple(drawdown_curve),
        drawdown_analysis=analyze_drawdowns(equity_curve, initial_balance),
        risk_analysis=calculate_risk_analysis(returns, final_equity, params.var_confidence),
        open_trade=open_trade,
    )


def run_backtest(
    strategy_data: dict,
    bars: Sequence,
    initial_balance: float = 10000.0,
    spread: float = 1.5,
    commission: float = 7.0,
    symbol: Optional[str] = None,
    strategy_id: Optional[str] = None
) -> BacktestResult:
    """Parse strategy_data and run a single backtest with default engine parameters."""
    engine = BacktestEngine()
    request = BacktestRequest(
        strategy=StrategyConfig.from_dict(strategy_data, engine.params),
        bars=tuple(bars),
        initial_balance=initial_balance,
        spread=spread,
        commission=commission,
        symbol=symbol,
        strategy_id=strategy_id,
    )
    return engine.run(request)
