"""Pairs trading on the hedged spread between two correlated symbols."""

from collections.abc import Sequence

from ..config.defaults import PairsTradingParams
from ..data.models import OHLCBar, OrderSide
from ..indicators.statistics import ols_hedge_ratio, pearson_correlation, zscore
from .base import BaseAlgorithm
from .models import AlgorithmType, AnalysisResult, LiveAnalysis, Signal

MAX_SIZE_MULTIPLIER = 2.0


class PairsTradingAlgorithm(BaseAlgorithm):
    """
    Trades the residual of the first symbol regressed on the second.

    spread = price1 - hedge_ratio * price2 over the cointegration window.
    A positive spread z-score sells the first leg and buys the second; the
    second leg travels in the signal metadata and is executed by the
    coordinator.
    """

    algorithm_type = AlgorithmType.PAIRS_TRADING
    params_class = PairsTradingParams
    params: PairsTradingParams

    def required_history(self) -> int:
        return self.params.cointegration_period

    def related_symbols(self) -> tuple[str, ...]:
        return tuple(self.params.pair_symbols)

    @property
    def symbol(self) -> str:
        return self.params.pair_symbols[0]

    def _series(self, symbol: str, bars: Sequence[OHLCBar], live: LiveAnalysis) -> Sequence[OHLCBar]:
        related = live.related_bars.get(symbol)
        if related:
            return related
        if bars and bars[-1].symbol == symbol:
            return bars
        return []

    def analyze(self, bars: Sequence[OHLCBar], live: LiveAnalysis) -> AnalysisResult:
        first, second = self.params.pair_symbols
        first_bars = self._series(first, bars, live)
        second_bars = self._series(second, bars, live)
        self._require_history(first_bars, first)
        self._require_history(second_bars, second)

        period = self.params.cointegration_period
        prices1 = [bar.close for bar in first_bars[-period:]]
        prices2 = [bar.close for bar in second_bars[-period:]]

        hedge_ratio = ols_hedge_ratio(prices1, prices2)
        spreads = [a - hedge_ratio * b for a, b in zip(prices1, prices2)]
        z = zscore(spreads[-1], spreads[:-1])
        correlation = pearson_correlation(prices1, prices2)

        direction = OrderSide.SELL if z > 0 else OrderSide.BUY
        reference_price = prices1[-1]
        if live.tick is not None and live.tick.symbol == first:
            reference_price = live.tick.mid

        return AnalysisResult(
            algorithm_type=self.algorithm_type,
            symbol=first,
            is_entry_signal=(
                abs(z) > self.params.entry_threshold
                and correlation > self.params.correlation_minimum
            ),
            is_exit_signal=abs(z) < self.params.exit_threshold,
            direction=direction,
            reference_price=reference_price,
            values={
                "z_score": z,
                "spread": spreads[-1],
                "hedge_ratio": hedge_ratio,
                "correlation": correlation,
                "paired_symbol": second,
                "paired_side": direction.opposite.value,
                "paired_price": prices2[-1],
            },
            timestamp=first_bars[-1].timestamp,
        )

    def validate_signal(self, signal: Signal) -> bool:
        # Both legs need a slot
        return self._has_capacity(reserve=1)

    def _raw_position_size(self, signal: Signal) -> float:
        z = abs(float(signal.metadata.get("z_score", 0.0)))
        return self.config.execution_settings.min_position_size * min(z / 2.0, MAX_SIZE_MULTIPLIER)
