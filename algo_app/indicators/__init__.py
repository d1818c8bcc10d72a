"""
Indicator library: pure, deterministic functions over price and OHLC series.

Insufficient data never raises; each indicator degrades to a documented
default so backtests and live cycles keep running.
"""

from .analysis import build_market_analysis
from .moving_averages import calculate_ema, calculate_sma, ema_series, sma_series
from .orderbook import analyze_depth, calculate_volume_imbalance, side_volume
from .oscillators import (
    MACDResult,
    MACDSeries,
    calculate_macd,
    calculate_rsi,
    macd_series,
    rsi_series,
)
from .statistics import (
    mean,
    ols_hedge_ratio,
    pearson_correlation,
    population_stddev,
    rate_of_change,
    zscore,
)
from .volatility import (
    BollingerBands,
    atr_series,
    bollinger_series,
    calculate_atr,
    calculate_bollinger_bands,
    calculate_natr,
    calculate_true_range,
)

__all__ = [
    "BollingerBands",
    "MACDResult",
    "MACDSeries",
    "analyze_depth",
    "atr_series",
    "bollinger_series",
    "build_market_analysis",
    "calculate_atr",
    "calculate_bollinger_bands",
    "calculate_ema",
    "calculate_macd",
    "calculate_natr",
    "calculate_rsi",
    "calculate_sma",
    "calculate_true_range",
    "calculate_volume_imbalance",
    "ema_series",
    "macd_series",
    "mean",
    "ols_hedge_ratio",
    "pearson_correlation",
    "population_stddev",
    "rate_of_change",
    "rsi_series",
    "side_volume",
    "sma_series",
    "zscore",
]
