"""
Historical backtesting.

BacktestEngine runs rule-based StrategyConfig objects; StrategyReplay runs
live strategy instances over the same kind of bar series.
"""

from .engine import BacktestEngine, build_result, run_backtest
from .models import (
    BacktestRequest,
    BacktestResult,
    BacktestTrade,
    DrawdownAnalysis,
    DrawdownPoint,
    EquityPoint,
    PerformanceMetrics,
    RiskAnalysis,
    StrategyConfig,
    TradeStatistics,
)
from .replay import REPLAYABLE_TYPES, StrategyReplay

__all__ = [
    "REPLAYABLE_TYPES",
    "BacktestEngine",
    "BacktestRequest",
    "BacktestResult",
    "BacktestTrade",
    "DrawdownAnalysis",
    "DrawdownPoint",
    "EquityPoint",
    "PerformanceMetrics",
    "RiskAnalysis",
    "StrategyConfig",
    "StrategyReplay",
    "TradeStatistics",
    "build_result",
    "run_backtest",
]
