"""Market data provider contract and an in-memory historical implementation."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Optional

import structlog

from ..indicators.analysis import build_market_analysis
from .models import MarketAnalysis, MarketDepth, OHLCBar, PriceTick
from .validators import prepare_bars

logger = structlog.get_logger(__name__)


class MarketDataProvider(ABC):
    """Source of bars, quotes, depth and analysis consumed by the trading core."""

    @abstractmethod
    async def get_historical_data(self, symbol: str, timeframe: str, limit: int) -> list[OHLCBar]:
        """
        Most recent bars for a symbol, oldest first.

        Args:
            symbol: Instrument symbol
            timeframe: Bar timeframe such as "1h"
            limit: Maximum number of bars to return

        Returns:
            Up to `limit` bars in ascending timestamp order
        """

    @abstractmethod
    async def get_price_tick(self, symbol: str) -> Optional[PriceTick]:
        """Latest bid/ask quote, None if unavailable."""

    @abstractmethod
    async def get_market_depth(self, symbol: str) -> Optional[MarketDepth]:
        """Latest order book snapshot, None if unavailable."""

    @abstractmethod
    async def get_market_analysis(self, symbol: str, timeframe: Optional[str] = None) -> Optional[MarketAnalysis]:
        """Indicator, trend, volatility and liquidity summary, None if unavailable."""


class HistoricalMarketDataProvider(MarketDataProvider):
    """
    Serves registered bars, ticks and depth snapshots from memory.

    Used for backtest-driven optimization, the smoke test and as a stand-in
    for a live feed. Ticks fall back to the last bar close when none has
    been set explicitly.
    """

    def __init__(self, analysis_window: int = 100):
        self.analysis_window = analysis_window
        self._bars: dict[tuple[str, str], list[OHLCBar]] = {}
        self._ticks: dict[str, PriceTick] = {}
        self._depth: dict[str, MarketDepth] = {}

    def add_bars(self, symbol: str, timeframe: str, bars: Sequence[OHLCBar]) -> None:
        """Register bars for a symbol/timeframe, merged with any already stored."""
        key = (symbol, timeframe)
        by_timestamp = {bar.timestamp: bar for bar in self._bars.get(key, [])}
        for bar in bars:
            by_timestamp[bar.timestamp] = bar
        self._bars[key] = prepare_bars(list(by_timestamp.values()))
        logger.debug("bars_registered", symbol=symbol, timeframe=timeframe, count=len(self._bars[key]))

    def set_tick(self, tick: PriceTick) -> None:
        self._ticks[tick.symbol] = tick

    def set_depth(self, depth: MarketDepth) -> None:
        self._depth[depth.symbol] = depth

    def _series(self, symbol: str, timeframe: Optional[str]) -> list[OHLCBar]:
        if timeframe is not None:
            return self._bars.get((symbol, timeframe), [])
        for (stored_symbol, _), bars in self._bars.items():
            if stored_symbol == symbol:
                return bars
        return []

    async def get_historical_data(self, symbol: str, timeframe: str, limit: int) -> list[OHLCBar]:
        bars = self._series(symbol, timeframe)
        if limit <= 0:
            return []
        return list(bars[-limit:])

    async def get_price_tick(self, symbol: str) -> Optional[PriceTick]:
        tick = self._ticks.get(symbol)
        if tick is not None:
            return tick

        bars = self._series(symbol, None)
        if not bars:
            return None
        last = bars[-1]
        return PriceTick(symbol=symbol, bid=last.close, ask=last.close,
                         timestamp=last.timestamp, last=last.close, volume=last.volume)

    async def get_market_depth(self, symbol: str) -> Optional[MarketDepth]:
        return self._depth.get(symbol)

    async def get_market_analysis(self, symbol: str, timeframe: Optional[str] = None) -> Optional[MarketAnalysis]:
        bars = self._series(symbol, timeframe)
        if not bars:
            return None

        tick = self._ticks.get(symbol)
        spread_average = tick.spread if tick is not None else 0.0
        return build_market_analysis(symbol, bars[-self.analysis_window:], spread_average=spread_average)
