"""Symbol correlation lookup used for correlation and portfolio risk."""

from collections.abc import Iterable, Mapping, Sequence
from typing import Optional

from ..indicators.statistics import pearson_correlation

DEFAULT_FX_CORRELATIONS: dict[tuple[str, str], float] = {
    ("EURUSD", "GBPUSD"): 0.8,
    ("EURUSD", "USDJPY"): -0.6,
    ("GBPUSD", "USDJPY"): -0.5,
}


class CorrelationTable:
    """
    Symmetric pairwise correlation table.

    A symbol is perfectly correlated with itself; unknown pairs are 0.0.
    """

    def __init__(self, correlations: Optional[Mapping[tuple[str, str], float]] = None):
        self._values: dict[frozenset[str], float] = {}
        for (first, second), value in (correlations or {}).items():
            self.set(first, second, value)

    @classmethod
    def default(cls) -> 'CorrelationTable':
        return cls(DEFAULT_FX_CORRELATIONS)

    @classmethod
    def from_price_history(cls, closes: Mapping[str, Sequence[float]]) -> 'CorrelationTable':
        """Build a table of Pearson correlations from per-symbol close series."""
        table = cls()
        symbols = sorted(closes)
        for i, first in enumerate(symbols):
            for second in symbols[i + 1:]:
                table.set(first, second, pearson_correlation(closes[first], closes[second]))
        return table

    def set(self, first: str, second: str, value: float) -> None:
        if first == second:
            return
        if not -1.0 <= value <= 1.0:
            raise ValueError(f"correlation must be within [-1, 1], got {value}")
        self._values[frozenset((first, second))] = value

    def get(self, first: str, second: str) -> float:
        if first == second:
            return 1.0
        return self._values.get(frozenset((first, second)), 0.0)

    def average_absolute(self, symbols: Iterable[str]) -> tuple[float, int]:
        """
        Average |correlation| over every distinct pair of distinct symbols.

        Returns:
            (average, pair count); (0.0, 0) with fewer than two symbols
        """
        distinct = sorted(set(symbols))
        total = 0.0
        pairs = 0
        for i, first in enumerate(distinct):
            for second in distinct[i + 1:]:
                total += abs(self.get(first, second))
                pairs += 1
        if pairs == 0:
            return 0.0, 0
        return total / pairs, pairs

    def exposure_to(self, symbol: str, held: Iterable[str]) -> float:
        """Average |correlation| between a symbol and the other held symbols, 0.0 if none."""
        others = [other for other in set(held) if other != symbol]
        if not others:
            return 0.0
        return sum(abs(self.get(symbol, other)) for other in others) / len(others)
