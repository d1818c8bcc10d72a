"""
Canonical market and account data models.

Bars, ticks and depth snapshots are produced by a MarketDataProvider and
consumed read-only by the indicator library, the backtest engine and the
strategies. Positions and account snapshots come from an ExecutionGateway.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..utils.time import format_timestamp, parse_timestamp


class OrderSide(str, Enum):
    """Trade direction."""
    BUY = "buy"
    SELL = "sell"

    @property
    def direction(self) -> int:
        """+1 for long, -1 for short."""
        return 1 if self is OrderSide.BUY else -1

    @property
    def opposite(self) -> "OrderSide":
        return OrderSide.SELL if self is OrderSide.BUY else OrderSide.BUY


class TrendDirection(str, Enum):
    """Coarse trend classification used by market analysis."""
    UP = "up"
    DOWN = "down"
    SIDEWAYS = "sideways"


@dataclass(frozen=True)
class OHLCBar:
    """One OHLC bar. Series are ordered ascending by timestamp."""
    symbol: str
    timestamp: datetime
    timeframe: str
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "timestamp": format_timestamp(self.timestamp),
            "timeframe": self.timeframe,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OHLCBar":
        return cls(
            symbol=data["symbol"],
            timestamp=parse_timestamp(data["timestamp"]),
            timeframe=data.get("timeframe", ""),
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
            volume=float(data.get("volume", 0.0)),
        )


@dataclass(frozen=True)
class PriceTick:
    """Best bid/ask quote."""
    symbol: str
    bid: float
    ask: float
    timestamp: datetime
    last: Optional[float] = None
    volume: float = 0.0

    @property
    def mid(self) -> float:
        return (self.bid + self.ask) / 2.0

    @property
    def spread(self) -> float:
        return self.ask - self.bid


@dataclass(frozen=True)
class MarketDepth:
    """Order book snapshot as (price, volume) levels, best first."""
    symbol: str
    bids: tuple[tuple[float, float], ...]
    asks: tuple[tuple[float, float], ...]
    timestamp: Optional[datetime] = None

    @property
    def best_bid(self) -> Optional[float]:
        return self.bids[0][0] if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        return self.asks[0][0] if self.asks else None


@dataclass(frozen=True)
class MarketAnalysis:
    """Indicator, trend, volatility and liquidity summary for one symbol."""
    symbol: str
    timestamp: datetime
    indicators: dict[str, Any] = field(default_factory=dict)
    trend_direction: TrendDirection = TrendDirection.SIDEWAYS
    trend_strength: float = 50.0                     # 0-100
    atr: Optional[float] = None
    standard_deviation: Optional[float] = None
    volatility_score: float = 0.0                    # 0-100
    liquidity_score: float = 0.0                     # 0-100
    volume: float = 0.0
    spread_average: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "timestamp": format_timestamp(self.timestamp),
            "indicators": dict(self.indicators),
            "trend": {"direction": self.trend_direction.value, "strength": self.trend_strength},
            "volatility": {
                "atr": self.atr,
                "standard_deviation": self.standard_deviation,
                "score": self.volatility_score,
            },
            "liquidity": {
                "score": self.liquidity_score,
                "volume": self.volume,
                "spread_average": self.spread_average,
            },
        }


@dataclass(frozen=True)
class Position:
    """Open position as reported by the execution gateway."""
    ticket: int
    symbol: str
    side: OrderSide
    volume: float
    price_open: float
    price_current: float
    sl: float = 0.0
    tp: float = 0.0
    profit: float = 0.0
    comment: str = ""

    @property
    def notional(self) -> float:
        return self.volume * self.price_open


@dataclass(frozen=True)
class AccountInfo:
    """Account snapshot."""
    balance: float
    equity: float
    margin: float = 0.0
    profit: float = 0.0


@dataclass(frozen=True)
class OrderRequest:
    """Market order submitted through the execution gateway."""
    symbol: str
    side: OrderSide
    volume: float
    price: Optional[float] = None
    sl: Optional[float] = None
    tp: Optional[float] = None
    comment: str = ""


@dataclass(frozen=True)
class OrderResult:
    """Fill confirmation. The order id doubles as the position ticket."""
    order: int
    deal: int
    price: float


@dataclass(frozen=True)
class GatewayResult:
    """Outcome of a close or modify request."""
    success: bool
    ticket: int
    message: str = ""
    profit: Optional[float] = None
