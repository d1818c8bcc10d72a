"""Tests for bar validation and the historical market data provider."""

from dataclasses import replace

import pytest

from algo_app.data import MarketDepth, PriceTick, TrendDirection, prepare_bars, validate_bar
from algo_app.errors import MalformedDataError


class TestValidators:
    """Test bar structure checks."""

    def test_prepare_sorts(self, make_bars):
        bars = make_bars([1.1, 1.2, 1.3])
        assert prepare_bars(list(reversed(bars))) == bars

    def test_duplicate_timestamp(self, make_bars):
        bars = make_bars([1.1, 1.2])
        with pytest.raises(MalformedDataError) as exc_info:
            prepare_bars([bars[0], replace(bars[1], timestamp=bars[0].timestamp)])
        assert exc_info.value.expected_format == "strictly increasing timestamps"

    def test_high_below_low(self, make_bars):
        bar = replace(make_bars([1.1])[0], high=1.0, low=1.2)
        with pytest.raises(MalformedDataError):
            validate_bar(bar)

    def test_close_outside_range(self, make_bars):
        bar = replace(make_bars([1.1])[0], close=1.5)
        with pytest.raises(MalformedDataError):
            validate_bar(bar)


class TestHistoricalMarketDataProvider:
    """Test the in-memory provider."""

    @pytest.mark.asyncio
    async def test_returns_latest_bars(self, provider, make_bars, rising_closes):
        bars = make_bars(rising_closes)
        provider.add_bars("EURUSD", "1h", bars)

        latest = await provider.get_historical_data("EURUSD", "1h", 10)
        assert latest == bars[-10:]
        assert await provider.get_historical_data("EURUSD", "4h", 10) == []
        assert await provider.get_historical_data("EURUSD", "1h", 0) == []

    @pytest.mark.asyncio
    async def test_add_bars_merges(self, provider, make_bars, rising_closes):
        bars = make_bars(rising_closes)
        provider.add_bars("EURUSD", "1h", bars[50:])
        provider.add_bars("EURUSD", "1h", bars[:60])
        assert await provider.get_historical_data("EURUSD", "1h", 1000) == bars

    @pytest.mark.asyncio
    async def test_tick_falls_back_to_last_close(self, provider, make_bars):
        provider.add_bars("EURUSD", "1h", make_bars([1.1, 1.2]))
        tick = await provider.get_price_tick("EURUSD")
        assert tick.bid == tick.ask == 1.2
        assert await provider.get_price_tick("GBPUSD") is None

    @pytest.mark.asyncio
    async def test_explicit_tick_and_depth(self, provider, clock):
        tick = PriceTick(symbol="EURUSD", bid=1.1, ask=1.1002, timestamp=clock())
        depth = MarketDepth(symbol="EURUSD", bids=((1.1, 10.0),), asks=((1.1002, 10.0),))
        provider.set_tick(tick)
        provider.set_depth(depth)

        assert await provider.get_price_tick("EURUSD") == tick
        assert await provider.get_market_depth("EURUSD") == depth
        assert await provider.get_market_depth("GBPUSD") is None

    @pytest.mark.asyncio
    async def test_market_analysis(self, provider, make_bars, rising_closes, clock):
        provider.add_bars("EURUSD", "1h", make_bars(rising_closes))
        provider.set_tick(PriceTick(symbol="EURUSD", bid=1.1, ask=1.1002, timestamp=clock()))

        analysis = await provider.get_market_analysis("EURUSD", "1h")
        assert analysis.trend_direction == TrendDirection.UP
        assert analysis.spread_average == pytest.approx(0.0002)
        assert "rsi" in analysis.indicators
        assert await provider.get_market_analysis("GBPUSD") is None
