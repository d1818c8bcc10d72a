"""RSI and MACD."""

from collections.abc import Sequence
from dataclasses import dataclass

from .moving_averages import ema_series

NEUTRAL_RSI = 50.0


@dataclass(frozen=True)
class MACDResult:
    """MACD line, signal line and histogram at one index."""
    line: float
    signal: float
    histogram: float

    def to_dict(self) -> dict[str, float]:
        return {"line": self.line, "signal": self.signal, "histogram": self.histogram}


@dataclass(frozen=True)
class MACDSeries:
    """Full MACD series, one entry per input sample."""
    line: list[float]
    signal: list[float]
    histogram: list[float]


def _rsi_from_window(changes: Sequence[float], period: int) -> float:
    gains = sum(c for c in changes if c > 0) / period
    losses = sum(-c for c in changes if c < 0) / period

    if losses == 0:
        return 100.0 if gains > 0 else NEUTRAL_RSI

    rs = gains / losses
    return 100.0 - (100.0 / (1.0 + rs))


def calculate_rsi(values: Sequence[float], period: int = 14) -> float:
    """
    Relative Strength Index from the average gain and loss over the
    trailing `period` price changes.

    Returns exactly 50.0 when fewer than period+1 samples exist. A window
    with gains and no losses is 100; a flat window is 50.
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")
    if len(values) < period + 1:
        return NEUTRAL_RSI

    window = values[-(period + 1):]
    changes = [window[i] - window[i - 1] for i in range(1, len(window))]
    return _rsi_from_window(changes, period)


def rsi_series(values: Sequence[float], period: int = 14) -> list[float]:
    """RSI for every index; 50.0 until period+1 samples are available."""
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")

    result: list[float] = []
    changes = [0.0] + [values[i] - values[i - 1] for i in range(1, len(values))]

    for i in range(len(values)):
        if i < period:
            result.append(NEUTRAL_RSI)
        else:
            result.append(_rsi_from_window(changes[i - period + 1:i + 1], period))

    return result


def macd_series(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9
) -> MACDSeries:
    """
    MACD line = EMA(fast) - EMA(slow); signal = EMA(signal) of the line.

    Warm-up indices inherit the echoed EMA values, so a flat warm-up yields
    zeros rather than an error.
    """
    fast = ema_series(values, fast_period)
    slow = ema_series(values, slow_period)
    line = [f - s for f, s in zip(fast, slow)]
    signal = ema_series(line, signal_period)
    histogram = [m - s for m, s in zip(line, signal)]
    return MACDSeries(line=line, signal=signal, histogram=histogram)


def calculate_macd(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9
) -> MACDResult:
    """Latest MACD values; all zeros on empty input."""
    if not values:
        return MACDResult(line=0.0, signal=0.0, histogram=0.0)

    series = macd_series(values, fast_period, slow_period, signal_period)
    return MACDResult(
        line=series.line[-1],
        signal=series.signal[-1],
        histogram=series.histogram[-1],
    )
