"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import pytest

from algo_app.data.models import OHLCBar
from algo_app.data.provider import HistoricalMarketDataProvider
from algo_app.gateways.paper import PaperExecutionGateway
from algo_app.persistence.config_store import InMemoryConfigStore
from algo_app.strategies import AlgorithmConfig, AlgorithmType, ExecutionSettings, MarketConditions
from algo_app.utils.time import ManualClock

START = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def _bars(
    closes: list[float],
    symbol: str = "EURUSD",
    timeframe: str = "1h",
    start: datetime = START,
    step: timedelta = timedelta(hours=1),
    volumes: Optional[list[float]] = None,
    opens: Optional[list[float]] = None,
) -> list[OHLCBar]:
    bars = []
    for i, close in enumerate(closes):
        if opens is not None:
            open_ = opens[i]
        else:
            open_ = closes[i - 1] if i > 0 else close
        volume = volumes[i] if volumes is not None else 1000.0
        bars.append(OHLCBar(
            symbol=symbol,
            timestamp=start + step * i,
            timeframe=timeframe,
            open=open_,
            high=max(open_, close) + 0.0005,
            low=min(open_, close) - 0.0005,
            close=close,
            volume=volume,
        ))
    return bars


@pytest.fixture
def make_bars() -> Callable[..., list[OHLCBar]]:
    """Factory building hourly bars from a close series; each open is the previous close."""
    return _bars


@pytest.fixture
def rising_closes() -> list[float]:
    """Strictly increasing 100-bar close series."""
    return [1.1000 + 0.0010 * i for i in range(100)]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def store() -> InMemoryConfigStore:
    return InMemoryConfigStore()


@pytest.fixture
def gateway() -> PaperExecutionGateway:
    return PaperExecutionGateway(balance=10000.0)


@pytest.fixture
def provider() -> HistoricalMarketDataProvider:
    return HistoricalMarketDataProvider()


@pytest.fixture
def sample_request() -> dict[str, Any]:
    """Create-algorithm request body for a mean reversion instance."""
    return {
        "name": "EURUSD reversion",
        "type": "mean_reversion",
        "description": "Fades two-sigma moves",
        "parameters": {
            "lookback_period": 20,
            "entry_deviation": 2.0,
        },
        "market_conditions": {
            "symbols": ["EURUSD"],
            "timeframes": ["1h"],
        },
    }


def _config(
    algorithm_type: AlgorithmType,
    parameters: Optional[dict[str, Any]] = None,
    algorithm_id: str = "algo_test",
    symbols: tuple[str, ...] = ("EURUSD",),
    **settings: Any,
) -> AlgorithmConfig:
    return AlgorithmConfig(
        id=algorithm_id,
        user_id="user-1",
        name=f"{algorithm_type.value} test",
        type=algorithm_type,
        parameters=parameters or {},
        market_conditions=MarketConditions(symbols=symbols),
        execution_settings=ExecutionSettings(**settings),
    )


@pytest.fixture
def make_config() -> Callable[..., AlgorithmConfig]:
    """Factory building an AlgorithmConfig; keyword settings go to ExecutionSettings."""
    return _config
