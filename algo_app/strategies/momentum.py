"""Rate-of-change momentum with trend, volume and RSI confirmation."""

from collections.abc import Sequence

from ..config.defaults import MomentumParams
from ..data.models import OHLCBar, OrderSide
from ..indicators.oscillators import calculate_rsi
from ..indicators.statistics import mean, rate_of_change
from .base import BaseAlgorithm
from .models import AlgorithmType, AnalysisResult, LiveAnalysis, Signal

VOLUME_LOOKBACK = 5
TREND_CONFIRMATION = 0.5


class MomentumAlgorithm(BaseAlgorithm):
    """Follows strong moves confirmed by a majority of recent up-bars."""

    algorithm_type = AlgorithmType.MOMENTUM
    params_class = MomentumParams
    params: MomentumParams

    def required_history(self) -> int:
        return max(self.params.momentum_period + 1, self.params.trend_filter_period)

    @staticmethod
    def trend_strength(bars: Sequence[OHLCBar], period: int) -> float:
        """Fraction of the last `period` bars that closed above their open.

        The same up-bar majority confirms entries in either direction.
        """
        recent = bars[-period:]
        if not recent:
            return 0.0
        return sum(1 for bar in recent if bar.close > bar.open) / len(recent)

    @staticmethod
    def volume_confirmed(bars: Sequence[OHLCBar]) -> bool:
        """Current volume above the average of up to five preceding bars."""
        if len(bars) < 2:
            return True
        previous = [bar.volume for bar in bars[-VOLUME_LOOKBACK - 1:-1]]
        return bars[-1].volume > mean(previous)

    def _rsi(self, bars: Sequence[OHLCBar], live: LiveAnalysis) -> float:
        # Provider analysis reports RSI(14); other periods are computed from the bars
        value = live.indicator("rsi")
        if self.params.rsi_period == 14 and isinstance(value, (int, float)):
            return float(value)
        return calculate_rsi([bar.close for bar in bars], self.params.rsi_period)

    def analyze(self, bars: Sequence[OHLCBar], live: LiveAnalysis) -> AnalysisResult:
        self._require_history(bars)
        params = self.params

        closes = [bar.close for bar in bars]
        momentum = rate_of_change(closes, params.momentum_period)
        direction = OrderSide.BUY if momentum > 0 else OrderSide.SELL
        trend = self.trend_strength(bars, params.trend_filter_period)

        volume_ok = self.volume_confirmed(bars) if params.volume_confirmation else True

        rsi = self._rsi(bars, live)
        rsi_filter = params.rsi_filter
        rsi_ok = (
            rsi_filter.oversold_level < rsi < rsi_filter.overbought_level
            if rsi_filter.enabled else True
        )

        return AnalysisResult(
            algorithm_type=self.algorithm_type,
            symbol=self.symbol,
            is_entry_signal=(
                abs(momentum) > params.entry_signal_strength
                and trend > TREND_CONFIRMATION
                and volume_ok
                and rsi_ok
            ),
            is_exit_signal=abs(momentum) < params.exit_signal_strength,
            direction=direction,
            reference_price=self._reference_price(bars, live),
            values={
                "momentum": momentum,
                "trend_strength": trend,
                "volume_confirmation": volume_ok,
                "rsi": rsi,
                "rsi_valid": rsi_ok,
            },
            timestamp=bars[-1].timestamp,
        )

    def _raw_position_size(self, signal: Signal) -> float:
        momentum = float(signal.metadata.get("momentum", 0.0))
        return self.config.execution_settings.min_position_size * abs(momentum) / 100.0
