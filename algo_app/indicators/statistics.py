"""Rolling statistics shared by the strategies and performance metrics."""

import math
from collections.abc import Sequence


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sample."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_stddev(values: Sequence[float]) -> float:
    """Population standard deviation, 0.0 for fewer than two samples."""
    if len(values) < 2:
        return 0.0
    mu = mean(values)
    return math.sqrt(sum((v - mu) ** 2 for v in values) / len(values))


def zscore(value: float, sample: Sequence[float]) -> float:
    """
    Normalized deviation of value against a reference sample.

    Returns 0.0 when the sample is empty or has zero dispersion.
    """
    std = population_stddev(sample)
    if std == 0:
        return 0.0
    return (value - mean(sample)) / std


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation of the most recent overlapping samples.

    The longer series is truncated from the front. Returns 0.0 when either
    side has zero variance or fewer than two samples overlap.
    """
    n = min(len(x), len(y))
    if n < 2:
        return 0.0
    xs = x[-n:]
    ys = y[-n:]
    x_mean = mean(xs)
    y_mean = mean(ys)

    covariance = sum((a - x_mean) * (b - y_mean) for a, b in zip(xs, ys))
    x_var = sum((a - x_mean) ** 2 for a in xs)
    y_var = sum((b - y_mean) ** 2 for b in ys)

    denominator = math.sqrt(x_var * y_var)
    if denominator == 0:
        return 0.0
    return max(-1.0, min(1.0, covariance / denominator))


def ols_hedge_ratio(dependent: Sequence[float], independent: Sequence[float]) -> float:
    """
    OLS slope of dependent regressed on independent.

    With spread = dependent - ratio * independent the spread is the
    regression residual. Returns 1.0 when the independent series is flat.
    """
    n = min(len(dependent), len(independent))
    if n < 2:
        return 1.0
    ys = dependent[-n:]
    xs = independent[-n:]
    x_mean = mean(xs)
    y_mean = mean(ys)

    numerator = sum((x - x_mean) * (y - y_mean) for x, y in zip(xs, ys))
    denominator = sum((x - x_mean) ** 2 for x in xs)
    if denominator == 0:
        return 1.0
    return numerator / denominator


def rate_of_change(values: Sequence[float], period: int) -> float:
    """Percentage change over `period` samples, 0.0 without enough history."""
    if len(values) < period + 1:
        return 0.0
    past = values[-period - 1]
    if past == 0:
        return 0.0
    return (values[-1] - past) / past * 100.0
