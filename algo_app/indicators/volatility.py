"""Bollinger bands, ATR (Average True Range) and NATR (Normalized ATR)."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from ..data.models import OHLCBar
from .statistics import population_stddev


@dataclass(frozen=True)
class BollingerBands:
    """Upper, middle and lower band at one index."""
    upper: float
    middle: float
    lower: float

    def to_dict(self) -> dict[str, float]:
        return {"upper": self.upper, "middle": self.middle, "lower": self.lower}


def bollinger_series(values: Sequence[float], period: int = 20, k: float = 2.0) -> list[BollingerBands]:
    """
    Bollinger bands for every index: SMA ± k·population stddev.

    Indices before the first full window collapse all three bands onto the
    input value.
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")

    result: list[BollingerBands] = []
    for i, value in enumerate(values):
        if i < period - 1:
            result.append(BollingerBands(upper=value, middle=value, lower=value))
            continue
        window = values[i - period + 1:i + 1]
        middle = sum(window) / period
        width = k * population_stddev(window)
        result.append(BollingerBands(upper=middle + width, middle=middle, lower=middle - width))

    return result


def calculate_bollinger_bands(values: Sequence[float], period: int = 20, k: float = 2.0) -> BollingerBands:
    """Latest bands; collapsed onto the last value while warming up, zeros on empty input."""
    if not values:
        return BollingerBands(upper=0.0, middle=0.0, lower=0.0)
    if len(values) < period:
        last = float(values[-1])
        return BollingerBands(upper=last, middle=last, lower=last)
    return bollinger_series(values[-period:], period, k)[-1]


def calculate_true_range(current: OHLCBar, previous: Optional[OHLCBar] = None) -> float:
    """
    True Range for a single bar.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    Args:
        current: Current bar
        previous: Previous bar (None for the first bar)

    Returns:
        True Range value
    """
    if previous is None:
        return current.high - current.low

    range_hl = current.high - current.low
    range_hc = abs(current.high - previous.close)
    range_lc = abs(current.low - previous.close)

    return max(range_hl, range_hc, range_lc)


def true_range_series(bars: Sequence[OHLCBar]) -> list[float]:
    """True Range for every bar; the first bar uses its own high-low range."""
    return [
        calculate_true_range(bar, bars[i - 1] if i > 0 else None)
        for i, bar in enumerate(bars)
    ]


def atr_series(bars: Sequence[OHLCBar], period: int = 14) -> list[float]:
    """ATR for every bar as the SMA of True Range; 0.0 before the first full window."""
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")

    true_ranges = true_range_series(bars)
    result: list[float] = []
    window_sum = 0.0
    for i, tr in enumerate(true_ranges):
        window_sum += tr
        if i >= period:
            window_sum -= true_ranges[i - period]
        result.append(window_sum / period if i >= period - 1 else 0.0)
    return result


def calculate_atr(bars: Sequence[OHLCBar], period: int = 14) -> float:
    """
    Average True Range over the last `period` bars.

    Args:
        bars: Bars in chronological order
        period: ATR period (default 14)

    Returns:
        ATR value, or 0.0 with fewer than `period` bars
    """
    if len(bars) < period:
        return 0.0

    # Include one extra bar so the first TR in the window sees a previous close
    window = bars[-(period + 1):]
    recent_trs = true_range_series(window)[-period:]
    return sum(recent_trs) / len(recent_trs)


def calculate_natr(atr: float, current_price: float) -> float:
    """
    Normalized Average True Range.

    NATR = 100 * ATR / current_price

    Returns:
        NATR percentage value, 0.0 for non-positive prices
    """
    if current_price <= 0:
        return 0.0

    return 100.0 * atr / current_price
