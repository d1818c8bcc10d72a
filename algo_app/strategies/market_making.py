"""Inventory-skewed market making with an order book adverse-selection filter."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Optional

from ..config.defaults import MarketMakingParams
from ..data.models import OHLCBar, OrderSide
from ..errors import MissingDataError
from ..indicators.orderbook import calculate_volume_imbalance
from ..utils.time import elapsed_ms, format_timestamp
from .base import BaseAlgorithm
from .models import AlgorithmType, AnalysisResult, LiveAnalysis, Signal

SKEW_ADJUSTMENT = 0.1


class MarketMakingAlgorithm(BaseAlgorithm):
    """
    Quotes around the order book mid, leaning away from held inventory.

    Inventory is tracked in lots from executed signals. One side is quoted
    per cycle: the side that moves inventory back toward inventory_target,
    alternating buy/sell while inventory sits on target.
    """

    algorithm_type = AlgorithmType.MARKET_MAKING
    params_class = MarketMakingParams
    params: MarketMakingParams

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.inventory = 0.0
        self.last_quote_time: Optional[datetime] = None
        self._next_flat_side = OrderSide.BUY

    def required_history(self) -> int:
        return 0

    def inventory_skew(self) -> float:
        if self.params.max_inventory_skew <= 0:
            return 0.0
        return self.inventory / self.params.max_inventory_skew

    def _choose_side(self) -> Optional[OrderSide]:
        limit = self.params.max_inventory_skew
        can_buy = self.inventory < limit
        can_sell = self.inventory > -limit

        if can_buy and can_sell:
            if self.inventory > self.params.inventory_target:
                return OrderSide.SELL
            if self.inventory < self.params.inventory_target:
                return OrderSide.BUY
            return self._next_flat_side
        if can_buy:
            return OrderSide.BUY
        if can_sell:
            return OrderSide.SELL
        return None

    def analyze(self, bars: Sequence[OHLCBar], live: LiveAnalysis) -> AnalysisResult:
        params = self.params
        depth = live.depth

        if depth is not None and depth.best_bid is not None and depth.best_ask is not None:
            mid_price = (depth.best_bid + depth.best_ask) / 2.0
            current_spread = depth.best_ask - depth.best_bid
        elif live.tick is not None:
            mid_price = live.tick.mid
            current_spread = live.tick.spread
        else:
            raise MissingDataError(
                f"No order book or tick for {self.symbol}",
                symbol=self.symbol,
                data_type="market_depth",
            )

        skew = self.inventory_skew()
        bid_adjustment = skew * params.spread_target * SKEW_ADJUSTMENT if skew > 0 else 0.0
        ask_adjustment = abs(skew) * params.spread_target * SKEW_ADJUSTMENT if skew < 0 else 0.0
        optimal_bid = mid_price - params.spread_target / 2.0 - bid_adjustment
        optimal_ask = mid_price + params.spread_target / 2.0 + ask_adjustment

        now = self.clock()
        should_refresh = (
            self.last_quote_time is None
            or elapsed_ms(self.last_quote_time, now) > params.quote_refresh_interval
        )

        imbalance = 0.0
        adverse_selection = False
        filter_params = params.adverse_selection_filter
        if filter_params.enabled and depth is not None:
            imbalance = calculate_volume_imbalance(depth, filter_params.depth_levels)
            adverse_selection = imbalance > filter_params.threshold

        side = self._choose_side()
        reference_price = None
        if side is not None:
            reference_price = optimal_bid if side == OrderSide.BUY else optimal_ask

        return AnalysisResult(
            algorithm_type=self.algorithm_type,
            symbol=self.symbol,
            is_entry_signal=should_refresh and not adverse_selection and side is not None,
            direction=side,
            reference_price=reference_price,
            values={
                "mid_price": mid_price,
                "optimal_bid": optimal_bid,
                "optimal_ask": optimal_ask,
                "current_spread": current_spread,
                "inventory_before": self.inventory,
                "inventory_skew": skew,
                "imbalance": imbalance,
                "adverse_selection": adverse_selection,
            },
            timestamp=now,
        )

    def generate_signal(self, result: AnalysisResult) -> Optional[Signal]:
        signal = super().generate_signal(result)
        if signal is None:
            return None

        self.last_quote_time = self.clock()
        if self.inventory == self.params.inventory_target:
            self._next_flat_side = signal.side.opposite
        return signal

    def validate_signal(self, signal: Signal) -> bool:
        volume = signal.volume or self.config.execution_settings.min_position_size
        projected = self.inventory + signal.side.direction * volume
        if abs(projected) > self.params.max_inventory_skew:
            return False
        if signal.metadata.get("adverse_selection"):
            return False
        return self._has_capacity()

    def _raw_position_size(self, signal: Signal) -> float:
        base = self.config.execution_settings.min_position_size
        skew = abs(float(signal.metadata.get("inventory_skew", 0.0)))
        algorithm = self.params.order_size_algorithm

        if algorithm == "adaptive":
            # Smaller orders as inventory builds up
            return base * (1.0 - skew * 0.5)
        if algorithm == "inventory_based":
            return base * (1.0 + skew)
        return base

    def on_executed(self, signal: Signal) -> None:
        self.inventory += signal.side.direction * signal.volume
        self.logger.debug("Inventory updated", inventory=self.inventory, side=signal.side.value)

    def runtime_metadata(self) -> dict[str, Any]:
        return {
            "inventory": self.inventory,
            "last_quote_time": format_timestamp(self.last_quote_time),
        }
