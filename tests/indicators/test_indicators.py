"""Tests for the indicator library."""

import pytest

from algo_app.data.models import MarketDepth
from algo_app.indicators import (
    analyze_depth,
    build_market_analysis,
    calculate_atr,
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_natr,
    calculate_rsi,
    calculate_sma,
    calculate_volume_imbalance,
    ema_series,
    ols_hedge_ratio,
    pearson_correlation,
    population_stddev,
    rate_of_change,
    rsi_series,
    sma_series,
    zscore,
)


class TestMovingAverages:
    """Test SMA and EMA."""

    def test_sma_of_last_window(self):
        assert calculate_sma([1.0, 2.0, 3.0, 4.0, 5.0], 3) == pytest.approx(4.0)

    def test_sma_echoes_input_during_warmup(self):
        series = sma_series([1.0, 2.0, 3.0, 4.0], 3)
        assert series[:2] == [1.0, 2.0]
        assert series[2] == pytest.approx(2.0)
        assert series[3] == pytest.approx(3.0)

    def test_ema_seed_equals_sma(self):
        values = [1.0, 3.0, 2.0, 5.0, 4.0, 6.0, 7.0]
        series = ema_series(values, 5)
        assert series[4] == pytest.approx(sum(values[:5]) / 5)

    def test_ema_converges_on_constant_series(self):
        values = [2.5] * 50
        assert calculate_ema(values, 10) == pytest.approx(2.5)

    def test_ema_recursion(self):
        values = [1.0, 2.0, 3.0, 4.0]
        series = ema_series(values, 3)
        multiplier = 2.0 / 4.0
        assert series[3] == pytest.approx((4.0 - 2.0) * multiplier + 2.0)

    def test_empty_input(self):
        assert calculate_sma([], 5) == 0.0
        assert calculate_ema([], 5) == 0.0

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            sma_series([1.0, 2.0], 0)


class TestRSI:
    """Test Relative Strength Index."""

    def test_neutral_with_too_few_points(self):
        assert calculate_rsi([1.0, 2.0, 3.0], 14) == 50.0
        assert calculate_rsi([1.0 + i for i in range(14)], 14) == 50.0

    def test_only_gains(self):
        assert calculate_rsi([1.0 + i for i in range(15)], 14) == 100.0

    def test_flat_window(self):
        assert calculate_rsi([1.0] * 20, 14) == 50.0

    def test_only_losses(self):
        assert calculate_rsi([20.0 - i for i in range(15)], 14) == pytest.approx(0.0)

    def test_series_matches_latest_value(self):
        values = [1.0, 1.2, 1.1, 1.3, 1.25, 1.4, 1.35, 1.5]
        assert rsi_series(values, 5)[-1] == pytest.approx(calculate_rsi(values, 5))
        assert rsi_series(values, 5)[:5] == [50.0] * 5


class TestMACD:
    """Test MACD."""

    def test_flat_series_is_zero(self):
        result = calculate_macd([1.5] * 40)
        assert result.line == pytest.approx(0.0)
        assert result.signal == pytest.approx(0.0)
        assert result.histogram == pytest.approx(0.0)

    def test_rising_series_is_positive(self):
        result = calculate_macd([1.0 + 0.01 * i for i in range(60)])
        assert result.line > 0


class TestVolatility:
    """Test Bollinger bands, ATR and NATR."""

    def test_bollinger_constant_series_collapses(self):
        bands = calculate_bollinger_bands([1.2] * 25, 20)
        assert bands.upper == pytest.approx(1.2)
        assert bands.lower == pytest.approx(1.2)

    def test_bollinger_width(self):
        values = [1.0, 2.0, 3.0, 4.0, 5.0]
        bands = calculate_bollinger_bands(values, 5, 2.0)
        std = population_stddev(values)
        assert bands.middle == pytest.approx(3.0)
        assert bands.upper - bands.middle == pytest.approx(2.0 * std)

    def test_atr_constant_range(self, make_bars):
        bars = make_bars([1.1] * 20)
        assert calculate_atr(bars, 14) == pytest.approx(0.001)

    def test_atr_insufficient_bars(self, make_bars):
        assert calculate_atr(make_bars([1.1] * 5), 14) == 0.0

    def test_natr(self):
        assert calculate_natr(0.01, 2.0) == pytest.approx(0.5)
        assert calculate_natr(0.01, 0.0) == 0.0


class TestStatistics:
    """Test statistical helpers."""

    def test_zscore_zero_dispersion(self):
        assert zscore(5.0, [1.0, 1.0, 1.0]) == 0.0

    def test_zscore(self):
        assert zscore(3.0, [1.0, 2.0, 3.0]) == pytest.approx(1.0 / population_stddev([1.0, 2.0, 3.0]))

    def test_pearson_perfect(self):
        assert pearson_correlation([1.0, 2.0, 3.0], [2.0, 4.0, 6.0]) == pytest.approx(1.0)
        assert pearson_correlation([1.0, 2.0, 3.0], [3.0, 2.0, 1.0]) == pytest.approx(-1.0)

    def test_hedge_ratio(self):
        x = [1.0, 2.0, 3.0, 4.0]
        y = [2.0 * v + 1.0 for v in x]
        assert ols_hedge_ratio(y, x) == pytest.approx(2.0)
        assert ols_hedge_ratio(y, [1.0] * 4) == 1.0

    def test_rate_of_change(self):
        assert rate_of_change([100.0, 101.0, 110.0], 2) == pytest.approx(10.0)
        assert rate_of_change([100.0], 2) == 0.0


class TestOrderBook:
    """Test depth analysis."""

    def test_imbalance(self):
        depth = MarketDepth(symbol="EURUSD", bids=((1.1, 100.0),), asks=((1.1002, 50.0),))
        assert calculate_volume_imbalance(depth) == pytest.approx(0.5)

    def test_empty_book(self):
        depth = MarketDepth(symbol="EURUSD", bids=(), asks=())
        metrics = analyze_depth(depth)
        assert metrics.volume_imbalance == 0.0
        assert metrics.mid_price is None

    def test_depth_levels_limit(self):
        depth = MarketDepth(
            symbol="EURUSD",
            bids=((1.1, 10.0), (1.0999, 1000.0)),
            asks=((1.1002, 10.0),),
        )
        assert calculate_volume_imbalance(depth, max_levels=1) == 0.0


class TestMarketAnalysis:
    """Test the market analysis summary."""

    def test_rsi_needs_fifteen_bars(self, make_bars):
        analysis = build_market_analysis("EURUSD", make_bars([1.1 + 0.001 * i for i in range(15)]))
        assert "rsi" in analysis.indicators
        assert "sma" not in analysis.indicators

    def test_full_indicator_set(self, make_bars):
        bars = make_bars([1.1 + 0.001 * i for i in range(30)])
        analysis = build_market_analysis("EURUSD", bars)
        assert {"sma", "ema", "bollinger_bands", "rsi", "macd"} <= set(analysis.indicators)
        assert analysis.atr is not None
        assert analysis.timestamp == bars[-1].timestamp
