"""
Error handling tests for the trading core.

Tests cover the error classification hierarchy and how data quality
problems surface from strategies and the backtest engine.
"""

import pytest

from algo_app.backtest import BacktestEngine, BacktestRequest, StrategyConfig
from algo_app.errors import (
    AlgorithmNotFoundError,
    AlgorithmUnavailableError,
    ConfigurationError,
    DataQualityError,
    ExecutionGatewayError,
    InsufficientDataError,
    MalformedDataError,
    MissingDataError,
    PersistenceError,
    RiskLimitExceeded,
    StateTransitionError,
    SystemFailureError,
)
from algo_app.strategies import AlgorithmType, LiveAnalysis, create_algorithm


class TestErrorClassification:
    """Test error classification system."""

    def test_data_quality_error_hierarchy(self):
        """Test that data quality errors are recoverable and keep their fields."""
        base_error = DataQualityError("base error")
        assert base_error.recoverable is True
        assert base_error.context == {}

        missing_error = MissingDataError("no depth", symbol="EURUSD", data_type="market_depth")
        assert isinstance(missing_error, DataQualityError)
        assert missing_error.data_type == "market_depth"

        short_error = InsufficientDataError("short", required_count=20, available_count=5)
        assert isinstance(short_error, DataQualityError)
        assert (short_error.required_count, short_error.available_count) == (20, 5)

        malformed_error = MalformedDataError("bad bar", expected_format="high >= low", context={"index": 3})
        assert malformed_error.context == {"index": 3}

    def test_system_failure_error_hierarchy(self):
        """Test that system failures are unrecoverable."""
        for error in (
            ExecutionGatewayError("rejected", operation="place_order", symbol="EURUSD"),
            StateTransitionError("invalid", current_state="paused", attempted_transition="paused->executing"),
            PersistenceError("disk full", operation="set", target="algorithm:algo_1"),
        ):
            assert isinstance(error, SystemFailureError)
            assert error.recoverable is False

    def test_trading_errors(self):
        """Test configuration, risk and lookup errors."""
        config_error = ConfigurationError("bad", errors=["lookback_period"], algorithm_type="momentum")
        assert config_error.recoverable is False
        assert config_error.errors == ["lookback_period"]

        risk_error = RiskLimitExceeded("too much", limit_name="var_limit", value=1200.0, threshold=1000.0)
        assert risk_error.recoverable is True
        assert risk_error.limit_name == "var_limit"

        assert "algo_1" in str(AlgorithmNotFoundError("algo_1"))
        unavailable = AlgorithmUnavailableError("algo_1", "paused")
        assert unavailable.reason == "paused"
        assert unavailable.recoverable is True


class TestStrategyDataErrors:
    """Test how strategies report unusable input."""

    @pytest.mark.parametrize("algorithm_type", [
        AlgorithmType.STATISTICAL_ARBITRAGE,
        AlgorithmType.MOMENTUM,
        AlgorithmType.MEAN_REVERSION,
    ])
    def test_short_history(self, make_config, make_bars, algorithm_type):
        """Test that every bar-driven strategy rejects an empty series."""
        strategy = create_algorithm(make_config(algorithm_type))
        with pytest.raises(InsufficientDataError) as exc_info:
            strategy.analyze(make_bars([1.1] * 3), LiveAnalysis())
        assert exc_info.value.available_count == 3

    def test_market_making_without_prices(self, make_config):
        """Test that market making needs a book or a tick."""
        strategy = create_algorithm(make_config(AlgorithmType.MARKET_MAKING))
        with pytest.raises(MissingDataError):
            strategy.analyze([], LiveAnalysis())


class TestBacktestDataErrors:
    """Test backtest input validation."""

    def test_unsorted_duplicate_bars(self, make_bars):
        """Test that duplicate timestamps are rejected before the run."""
        bars = make_bars([1.1] * 30)
        request = BacktestRequest(strategy=StrategyConfig(indicators=("SMA",)), bars=tuple(bars + bars[-1:]))
        with pytest.raises(MalformedDataError):
            BacktestEngine().run(request)
