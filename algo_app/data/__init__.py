"""Market and account data models consumed by the trading core."""

from .models import (
    AccountInfo,
    GatewayResult,
    MarketAnalysis,
    MarketDepth,
    OHLCBar,
    OrderRequest,
    OrderResult,
    OrderSide,
    Position,
    PriceTick,
    TrendDirection,
)
from .validators import prepare_bars, validate_bar

__all__ = [
    "AccountInfo",
    "GatewayResult",
    "MarketAnalysis",
    "MarketDepth",
    "OHLCBar",
    "OrderRequest",
    "OrderResult",
    "OrderSide",
    "Position",
    "PriceTick",
    "TrendDirection",
    "prepare_bars",
    "validate_bar",
]
