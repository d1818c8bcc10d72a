"""Mean reversion on the price deviation from its rolling mean."""

from collections.abc import Sequence

from ..config.defaults import MeanReversionParams
from ..data.models import OHLCBar, OrderSide
from ..indicators.statistics import mean, population_stddev
from ..indicators.volatility import calculate_bollinger_bands
from .base import BaseAlgorithm
from .models import AlgorithmType, AnalysisResult, LiveAnalysis, Signal


class MeanReversionAlgorithm(BaseAlgorithm):
    """Sells prices stretched above the mean and buys prices stretched below it."""

    algorithm_type = AlgorithmType.MEAN_REVERSION
    params_class = MeanReversionParams
    params: MeanReversionParams

    def required_history(self) -> int:
        return self.params.lookback_period

    def analyze(self, bars: Sequence[OHLCBar], live: LiveAnalysis) -> AnalysisResult:
        self._require_history(bars)
        params = self.params

        closes = [bar.close for bar in bars]
        window = closes[-params.lookback_period:]
        current = closes[-1]
        mu = mean(window)
        std = population_stddev(window)
        deviation = (current - mu) / std if std > 0 else 0.0

        values = {
            "deviation": deviation,
            "mean": mu,
            "std_dev": std,
            "current_price": current,
        }
        if params.bollinger_bands.enabled:
            bands = calculate_bollinger_bands(
                closes, params.bollinger_bands.period, params.bollinger_bands.deviation
            )
            values["bollinger_bands"] = bands.to_dict()

        return AnalysisResult(
            algorithm_type=self.algorithm_type,
            symbol=self.symbol,
            is_entry_signal=abs(deviation) > params.entry_deviation,
            is_exit_signal=abs(deviation) < params.exit_deviation,
            direction=OrderSide.SELL if deviation > 0 else OrderSide.BUY,
            reference_price=self._reference_price(bars, live),
            values=values,
            timestamp=bars[-1].timestamp,
        )

    def validate_signal(self, signal: Signal) -> bool:
        # Deviations this far out are treated as a regime change, not a reversion setup
        if abs(float(signal.metadata.get("deviation", 0.0))) > self.params.max_deviation:
            return False
        return self._has_capacity()

    def _raw_position_size(self, signal: Signal) -> float:
        deviation = abs(float(signal.metadata.get("deviation", 0.0)))
        multiplier = max(0.1, 1.0 - deviation / 3.0)
        return self.config.execution_settings.min_position_size * multiplier
