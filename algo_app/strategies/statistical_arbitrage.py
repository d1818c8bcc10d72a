"""Statistical arbitrage on the z-score of the consecutive-close spread."""

from collections.abc import Sequence

from ..config.defaults import StatisticalArbitrageParams
from ..data.models import OHLCBar, OrderSide
from ..indicators.statistics import mean, population_stddev, zscore
from ..risk.assessment import account_equity
from ..utils.time import minutes_between
from .base import BaseAlgorithm
from .models import AlgorithmType, AnalysisResult, LiveAnalysis, PositionSizeMethod, Signal

KELLY_CAP = 0.25


class StatisticalArbitrageAlgorithm(BaseAlgorithm):
    """
    Fades extreme moves of the one-bar price spread.

    The latest spread is scored against the preceding lookback_period
    spreads; a positive z-score sells, a negative one buys.
    """

    algorithm_type = AlgorithmType.STATISTICAL_ARBITRAGE
    params_class = StatisticalArbitrageParams
    params: StatisticalArbitrageParams

    def required_history(self) -> int:
        # lookback spreads plus the latest one
        return self.params.lookback_period + 2

    def analyze(self, bars: Sequence[OHLCBar], live: LiveAnalysis) -> AnalysisResult:
        self._require_history(bars)

        closes = [bar.close for bar in bars]
        spreads = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
        latest = spreads[-1]
        window = spreads[-self.params.lookback_period - 1:-1]
        z = zscore(latest, window)

        return AnalysisResult(
            algorithm_type=self.algorithm_type,
            symbol=self.symbol,
            is_entry_signal=abs(z) > self.params.entry_threshold,
            is_exit_signal=abs(z) < self.params.exit_threshold,
            direction=OrderSide.SELL if z > 0 else OrderSide.BUY,
            reference_price=self._reference_price(bars, live),
            values={
                "z_score": z,
                "spread": latest,
                "spread_mean": mean(window),
                "spread_std": population_stddev(window),
                "account_equity": account_equity(live.account, self.risk_params.default_equity),
            },
            timestamp=bars[-1].timestamp,
        )

    def validate_signal(self, signal: Signal) -> bool:
        if not self._has_capacity():
            return False

        last_execution = self.state.last_execution_time
        if last_execution is not None:
            if minutes_between(last_execution, self.clock()) < self.params.max_holding_period:
                return False
        return True

    def _kelly_fraction(self) -> float:
        p = self.params.kelly_win_rate
        b = self.params.kelly_win_loss_ratio
        if b <= 0:
            return 0.0
        return max(0.0, min(KELLY_CAP, p - (1.0 - p) / b))

    def _raw_position_size(self, signal: Signal) -> float:
        settings = self.config.execution_settings
        method = settings.position_size_method

        if method == PositionSizeMethod.FIXED:
            return settings.min_position_size
        if method == PositionSizeMethod.KELLY:
            return self._kelly_fraction() * settings.max_position_size

        # Risk budget over a stop placed where the spread would reach the exit threshold
        price = signal.entry_price or 0.0
        z = float(signal.metadata.get("z_score", 0.0))
        stop_distance = abs(abs(z) - self.params.exit_threshold) * price * 0.01
        if stop_distance <= 0:
            return settings.min_position_size

        equity = float(signal.metadata.get("account_equity", self.risk_params.default_equity))
        risk_amount = min(
            equity * self.config.risk_limits.max_single_trade_loss / 100.0,
            settings.max_position_size,
        )
        return risk_amount / stop_distance * 0.01
