"""Tests for the momentum strategy."""

import pytest

from algo_app.data.models import MarketAnalysis, OrderSide
from algo_app.strategies import AlgorithmType, LiveAnalysis, MomentumAlgorithm, Signal, create_algorithm


def zigzag_closes(count=30):
    """Closes gaining 0.006 on odd steps and giving back 0.003 on even ones."""
    closes = [1.0]
    for i in range(1, count):
        closes.append(closes[-1] + (0.006 if i % 2 else -0.003))
    return closes


@pytest.fixture
def uptrend_bars(make_bars):
    def build(last_volume=2000.0):
        closes = zigzag_closes()
        volumes = [1000.0] * (len(closes) - 1) + [last_volume]
        return make_bars(closes, volumes=volumes, opens=[c - 0.001 for c in closes])
    return build


class TestAnalyze:
    """Test the momentum entry filters."""

    def test_confirmed_uptrend_buys(self, make_config, uptrend_bars):
        strategy = create_algorithm(make_config(AlgorithmType.MOMENTUM))
        result = strategy.analyze(uptrend_bars(), LiveAnalysis())

        assert result.values["momentum"] == pytest.approx(0.03 / 1.018 * 100)
        assert result.values["rsi"] == pytest.approx(200.0 / 3.0)
        assert result.values["trend_strength"] == 1.0
        assert result.is_entry_signal is True
        assert result.direction == OrderSide.BUY

    def test_flat_volume_blocks_entry(self, make_config, uptrend_bars):
        strategy = create_algorithm(make_config(AlgorithmType.MOMENTUM))
        result = strategy.analyze(uptrend_bars(last_volume=1000.0), LiveAnalysis())
        assert result.values["volume_confirmation"] is False
        assert result.is_entry_signal is False

    def test_volume_filter_disabled(self, make_config, uptrend_bars):
        config = make_config(AlgorithmType.MOMENTUM, parameters={"volume_confirmation": False})
        result = create_algorithm(config).analyze(uptrend_bars(last_volume=1000.0), LiveAnalysis())
        assert result.is_entry_signal is True

    def test_rsi_outside_band_blocks_entry(self, make_config, uptrend_bars):
        config = make_config(AlgorithmType.MOMENTUM, parameters={"rsi_filter": {"overbought_level": 60.0}})
        result = create_algorithm(config).analyze(uptrend_bars(), LiveAnalysis())
        assert result.values["rsi_valid"] is False
        assert result.is_entry_signal is False

    def test_provider_rsi_is_used(self, make_config, uptrend_bars):
        bars = uptrend_bars()
        analysis = MarketAnalysis(symbol="EURUSD", timestamp=bars[-1].timestamp, indicators={"rsi": 85.0})
        result = create_algorithm(make_config(AlgorithmType.MOMENTUM)).analyze(
            bars, LiveAnalysis(market_analysis=analysis)
        )
        assert result.values["rsi"] == 85.0
        assert result.is_entry_signal is False

    def test_falling_down_bars_do_not_confirm(self, make_config, make_bars):
        config = make_config(AlgorithmType.MOMENTUM, parameters={"rsi_filter": {"enabled": False}})
        closes = [1.1 - 0.003 * i for i in range(30)]
        bars = make_bars(
            closes,
            volumes=[1000.0] * 29 + [2000.0],
            opens=[c + 0.001 for c in closes],
        )
        result = create_algorithm(config).analyze(bars, LiveAnalysis())

        assert result.values["momentum"] < -2.5
        assert result.values["trend_strength"] == 0.0
        assert result.direction == OrderSide.SELL
        assert result.is_entry_signal is False

    def test_falling_closes_with_up_bar_majority_sell(self, make_config, make_bars):
        config = make_config(AlgorithmType.MOMENTUM, parameters={"rsi_filter": {"enabled": False}})
        closes = [1.1 - 0.003 * i for i in range(30)]
        # 7 of the last 10 bars close above their open
        opens = [c - 0.0005 if i % 10 < 7 else c + 0.0005 for i, c in enumerate(closes)]
        bars = make_bars(closes, volumes=[1000.0] * 29 + [2000.0], opens=opens)
        result = create_algorithm(config).analyze(bars, LiveAnalysis())

        assert result.values["momentum"] == pytest.approx(-0.06 / 1.073 * 100)
        assert result.values["trend_strength"] == pytest.approx(0.7)
        assert result.direction == OrderSide.SELL
        assert result.is_entry_signal is True

    def test_weak_move_is_exit(self, make_config, make_bars):
        strategy = create_algorithm(make_config(AlgorithmType.MOMENTUM))
        result = strategy.analyze(make_bars([1.1] * 30), LiveAnalysis())
        assert result.values["momentum"] == 0.0
        assert result.is_exit_signal is True
        assert result.is_entry_signal is False


class TestFilters:
    """Test trend and volume helpers."""

    def test_trend_strength_counts_up_bars(self, make_bars):
        closes = [1.0 + 0.001 * i for i in range(10)]
        assert MomentumAlgorithm.trend_strength(make_bars(closes, opens=[c - 0.0005 for c in closes]), 10) == 1.0
        assert MomentumAlgorithm.trend_strength(make_bars(closes, opens=[c + 0.0005 for c in closes]), 10) == 0.0

    def test_trend_strength_uses_last_period(self, make_bars):
        closes = [1.0] * 12
        opens = [0.9, 0.9] + [0.9, 1.1] * 5
        assert MomentumAlgorithm.trend_strength(make_bars(closes, opens=opens), 10) == 0.5
        assert MomentumAlgorithm.trend_strength(make_bars(closes, opens=opens), 12) == pytest.approx(7 / 12)

    def test_empty_window(self):
        assert MomentumAlgorithm.trend_strength([], 10) == 0.0

    def test_volume_confirmation_window(self, make_bars):
        bars = make_bars([1.1] * 8, volumes=[5000.0, 5000.0, 100.0, 100.0, 100.0, 100.0, 100.0, 150.0])
        assert MomentumAlgorithm.volume_confirmed(bars) is True

    def test_single_bar_is_confirmed(self, make_bars):
        assert MomentumAlgorithm.volume_confirmed(make_bars([1.1])) is True


class TestPositionSizing:
    """Test momentum-scaled sizing."""

    def test_scaled_by_momentum(self, make_config):
        config = make_config(AlgorithmType.MOMENTUM, min_position_size=0.01)
        signal = Signal(
            id="sig", algorithm_id="algo_test", user_id="user-1", symbol="EURUSD",
            side=OrderSide.BUY, metadata={"momentum": 300.0},
        )
        assert create_algorithm(config).calculate_position_size(signal) == pytest.approx(0.03)

    def test_small_momentum_clamped_to_minimum(self, make_config):
        signal = Signal(
            id="sig", algorithm_id="algo_test", user_id="user-1", symbol="EURUSD",
            side=OrderSide.BUY, metadata={"momentum": 3.0},
        )
        assert create_algorithm(make_config(AlgorithmType.MOMENTUM)).calculate_position_size(signal) == 0.01
