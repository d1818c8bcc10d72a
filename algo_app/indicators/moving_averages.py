"""
Simple and exponential moving averages.

Series functions return one value per input sample. Indices before the
first full window echo the input value, so callers can index any bar
without special-casing the warm-up.
"""

from collections.abc import Sequence


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


def sma_series(values: Sequence[float], period: int) -> list[float]:
    """
    Trailing arithmetic mean for every index.

    Args:
        values: Price series, oldest first
        period: Window length

    Returns:
        List of len(values); indices < period-1 echo the input
    """
    _check_period(period)
    result: list[float] = []
    window_sum = 0.0

    for i, value in enumerate(values):
        window_sum += value
        if i >= period:
            window_sum -= values[i - period]
        if i < period - 1:
            result.append(float(value))
        else:
            result.append(window_sum / period)

    return result


def ema_series(values: Sequence[float], period: int) -> list[float]:
    """
    Exponential moving average for every index.

    Seeded with SMA(period) at index period-1, then
    ema = (price - prev_ema) * 2/(period+1) + prev_ema.
    Indices before the seed echo the input.
    """
    _check_period(period)
    result: list[float] = []
    multiplier = 2.0 / (period + 1)

    for i, value in enumerate(values):
        if i < period - 1:
            result.append(float(value))
        elif i == period - 1:
            result.append(sum(values[:period]) / period)
        else:
            prev = result[-1]
            result.append((value - prev) * multiplier + prev)

    return result


def calculate_sma(values: Sequence[float], period: int) -> float:
    """Latest SMA value; the last input while warming up, 0.0 on empty input."""
    if not values:
        return 0.0
    _check_period(period)
    if len(values) < period:
        return float(values[-1])
    return sum(values[-period:]) / period


def calculate_ema(values: Sequence[float], period: int) -> float:
    """Latest EMA value; the last input while warming up, 0.0 on empty input."""
    if not values:
        return 0.0
    return ema_series(values, period)[-1]
