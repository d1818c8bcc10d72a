"""
Market analysis summary built from an OHLC window.

Produces the indicators, trend, volatility and liquidity fields a
MarketDataProvider returns from get_market_analysis.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Optional

from ..data.models import MarketAnalysis, OHLCBar, TrendDirection
from ..utils.time import utc_now
from .moving_averages import calculate_ema, calculate_sma
from .oscillators import calculate_macd, calculate_rsi
from .statistics import mean, population_stddev
from .volatility import calculate_atr, calculate_bollinger_bands

TREND_MIN_SAMPLES = 10
TREND_DEADBAND = 0.001
VOLATILITY_REFERENCE = 0.05                          # 5% return stddev scores 100
LIQUIDITY_REFERENCE_VOLUME = 1_000_000.0             # average volume scoring 100


def calculate_trend(prices: Sequence[float]) -> tuple[TrendDirection, float]:
    """
    Compare the means of the older and newer halves of the window.

    Returns:
        (direction, strength 0-100); sideways/50 with fewer than 10 samples
    """
    if len(prices) < TREND_MIN_SAMPLES:
        return TrendDirection.SIDEWAYS, 50.0

    half = len(prices) // 2
    first_avg = mean(prices[:half])
    second_avg = mean(prices[half:])
    if first_avg == 0:
        return TrendDirection.SIDEWAYS, 0.0

    change = (second_avg - first_avg) / first_avg
    strength = min(abs(change) * 1000.0, 100.0)

    if change > TREND_DEADBAND:
        return TrendDirection.UP, strength
    if change < -TREND_DEADBAND:
        return TrendDirection.DOWN, strength
    return TrendDirection.SIDEWAYS, strength


def calculate_volatility_score(prices: Sequence[float], period: int = 20) -> float:
    """Stddev of the last `period` simple returns scaled to 0-100."""
    if len(prices) < period + 1:
        return 0.0

    returns = [
        (prices[i] - prices[i - 1]) / prices[i - 1]
        for i in range(len(prices) - period, len(prices))
        if prices[i - 1] != 0
    ]
    return min(population_stddev(returns) / VOLATILITY_REFERENCE * 100.0, 100.0)


def calculate_liquidity_score(volumes: Sequence[float]) -> float:
    """Average volume scaled to 0-100."""
    if not volumes:
        return 0.0
    return min(mean(volumes) / LIQUIDITY_REFERENCE_VOLUME * 100.0, 100.0)


def build_market_analysis(
    symbol: str,
    bars: Sequence[OHLCBar],
    spread_average: float = 0.0,
    timestamp: Optional[datetime] = None
) -> MarketAnalysis:
    """
    Build a MarketAnalysis from bars ordered oldest first.

    Indicators are only included once enough bars exist for their window:
    SMA/EMA/Bollinger need 20, RSI 15, MACD 26. ATR and standard deviation
    need 14.
    """
    prices = [bar.close for bar in bars]
    volumes = [bar.volume for bar in bars]
    indicators: dict[str, Any] = {}

    if len(prices) >= 20:
        indicators["sma"] = calculate_sma(prices, 20)
        indicators["ema"] = calculate_ema(prices, 20)
        indicators["bollinger_bands"] = calculate_bollinger_bands(prices, 20).to_dict()

    if len(prices) >= 15:
        indicators["rsi"] = calculate_rsi(prices, 14)

    if len(prices) >= 26:
        indicators["macd"] = calculate_macd(prices).to_dict()

    atr = None
    std_dev = None
    if len(bars) >= 14:
        atr = calculate_atr(bars, 14)
        std_dev = population_stddev(prices)

    direction, strength = calculate_trend(prices)

    if timestamp is None:
        timestamp = bars[-1].timestamp if bars else utc_now()

    return MarketAnalysis(
        symbol=symbol,
        timestamp=timestamp,
        indicators=indicators,
        trend_direction=direction,
        trend_strength=strength,
        atr=atr,
        standard_deviation=std_dev,
        volatility_score=calculate_volatility_score(prices),
        liquidity_score=calculate_liquidity_score(volumes),
        volume=sum(volumes),
        spread_average=spread_average,
    )
