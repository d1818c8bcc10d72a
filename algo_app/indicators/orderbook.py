"""Order book depth analysis for imbalance and adverse-selection detection"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from ..data.models import MarketDepth


@dataclass(frozen=True)
class DepthMetrics:
    """Order book analysis results"""
    bid_volume: float
    ask_volume: float
    bid_notional: float
    ask_notional: float
    volume_imbalance: float                           # |bid-ask| / max(bid, ask), 0-1
    mid_price: Optional[float]
    spread: Optional[float]


def side_volume(levels: Sequence[tuple[float, float]], max_levels: int = 5) -> float:
    """
    Total resting volume on one side of the book.

    Args:
        levels: (price, volume) levels, best first
        max_levels: Maximum levels to include

    Returns:
        Summed volume over the first max_levels levels
    """
    return sum(volume for _, volume in levels[:max_levels])


def side_notional(levels: Sequence[tuple[float, float]], max_levels: int = 5) -> float:
    """Total price * volume over the first max_levels levels."""
    return sum(price * volume for price, volume in levels[:max_levels])


def calculate_volume_imbalance(depth: MarketDepth, max_levels: int = 5) -> float:
    """
    Relative volume imbalance between bids and asks.

    imbalance = |bid_volume - ask_volume| / max(bid_volume, ask_volume)

    Returns:
        Value in [0, 1]; 0.0 when both sides are empty
    """
    bid_volume = side_volume(depth.bids, max_levels)
    ask_volume = side_volume(depth.asks, max_levels)
    larger = max(bid_volume, ask_volume)
    if larger <= 0:
        return 0.0
    return abs(bid_volume - ask_volume) / larger


def analyze_depth(depth: MarketDepth, max_levels: int = 5) -> DepthMetrics:
    """
    Summarize an order book snapshot.

    Args:
        depth: Order book snapshot
        max_levels: Maximum levels to analyze

    Returns:
        DepthMetrics with volumes, notionals, imbalance and top-of-book prices
    """
    mid_price = None
    spread = None
    if depth.best_bid is not None and depth.best_ask is not None:
        mid_price = (depth.best_bid + depth.best_ask) / 2.0
        spread = depth.best_ask - depth.best_bid

    return DepthMetrics(
        bid_volume=side_volume(depth.bids, max_levels),
        ask_volume=side_volume(depth.asks, max_levels),
        bid_notional=side_notional(depth.bids, max_levels),
        ask_notional=side_notional(depth.asks, max_levels),
        volume_imbalance=calculate_volume_imbalance(depth, max_levels),
        mid_price=mid_price,
        spread=spread,
    )
