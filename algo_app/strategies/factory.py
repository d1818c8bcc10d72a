"""Strategy construction keyed on the algorithm type discriminator."""

from typing import Optional, Union

from ..config.defaults import RiskEngineParams
from ..errors import ConfigurationError
from ..risk import CorrelationTable
from ..utils.time import Clock, utc_now
from .base import BaseAlgorithm
from .market_making import MarketMakingAlgorithm
from .mean_reversion import MeanReversionAlgorithm
from .models import AlgorithmConfig, AlgorithmType
from .momentum import MomentumAlgorithm
from .pairs_trading import PairsTradingAlgorithm
from .statistical_arbitrage import StatisticalArbitrageAlgorithm

ALGORITHM_CLASSES: dict[AlgorithmType, type[BaseAlgorithm]] = {
    AlgorithmType.STATISTICAL_ARBITRAGE: StatisticalArbitrageAlgorithm,
    AlgorithmType.MOMENTUM: MomentumAlgorithm,
    AlgorithmType.MEAN_REVERSION: MeanReversionAlgorithm,
    AlgorithmType.PAIRS_TRADING: PairsTradingAlgorithm,
    AlgorithmType.MARKET_MAKING: MarketMakingAlgorithm,
}


def resolve_algorithm_type(value: Union[str, AlgorithmType]) -> AlgorithmType:
    """
    Parse an algorithm type discriminator.

    Raises:
        ConfigurationError: unknown type
    """
    try:
        return AlgorithmType(value)
    except ValueError:
        raise ConfigurationError(
            f"Unknown algorithm type: {value}",
            algorithm_type=str(value),
        ) from None


def create_algorithm(
    config: AlgorithmConfig,
    clock: Clock = utc_now,
    correlation_table: Optional[CorrelationTable] = None,
    risk_params: Optional[RiskEngineParams] = None
) -> BaseAlgorithm:
    """Instantiate the strategy for config.type."""
    algorithm_class = ALGORITHM_CLASSES.get(resolve_algorithm_type(config.type))
    if algorithm_class is None:
        raise ConfigurationError(f"No strategy registered for {config.type}", algorithm_type=str(config.type))
    return algorithm_class(config, clock=clock, correlation_table=correlation_table, risk_params=risk_params)
