"""
Trading algorithm strategies.

Five variants share the BaseAlgorithm contract; create_algorithm selects
one from AlgorithmConfig.type.
"""

from .base import BaseAlgorithm, build_params
from .factory import ALGORITHM_CLASSES, create_algorithm, resolve_algorithm_type
from .market_making import MarketMakingAlgorithm
from .mean_reversion import MeanReversionAlgorithm
from .models import (
    AlgorithmConfig,
    AlgorithmType,
    AnalysisResult,
    ExecutionSettings,
    ExecutionStatus,
    LiveAnalysis,
    MarketConditions,
    PositionSizeMethod,
    RiskLimits,
    Signal,
)
from .momentum import MomentumAlgorithm
from .pairs_trading import PairsTradingAlgorithm
from .statistical_arbitrage import StatisticalArbitrageAlgorithm

__all__ = [
    "ALGORITHM_CLASSES",
    "AlgorithmConfig",
    "AlgorithmType",
    "AnalysisResult",
    "BaseAlgorithm",
    "ExecutionSettings",
    "ExecutionStatus",
    "LiveAnalysis",
    "MarketConditions",
    "MarketMakingAlgorithm",
    "MeanReversionAlgorithm",
    "MomentumAlgorithm",
    "PairsTradingAlgorithm",
    "PositionSizeMethod",
    "RiskLimits",
    "Signal",
    "StatisticalArbitrageAlgorithm",
    "build_params",
    "create_algorithm",
    "resolve_algorithm_type",
]
