"""Structural checks for OHLC series before they reach a calculation."""

from collections.abc import Sequence

from ..errors import MalformedDataError
from .models import OHLCBar


def validate_bar(bar: OHLCBar) -> None:
    """
    Check the internal consistency of a single bar.

    Raises:
        MalformedDataError: high below low, or a close outside [low, high]
    """
    if bar.high < bar.low:
        raise MalformedDataError(
            f"Bar high {bar.high} below low {bar.low}",
            raw_data=repr(bar),
            expected_format="high >= low",
            context={"symbol": bar.symbol, "timestamp": bar.timestamp.isoformat()},
        )
    if not bar.low <= bar.close <= bar.high:
        raise MalformedDataError(
            f"Bar close {bar.close} outside range [{bar.low}, {bar.high}]",
            raw_data=repr(bar),
            expected_format="low <= close <= high",
            context={"symbol": bar.symbol, "timestamp": bar.timestamp.isoformat()},
        )


def prepare_bars(bars: Sequence[OHLCBar]) -> list[OHLCBar]:
    """
    Return the bars sorted ascending by timestamp.

    Args:
        bars: Bars in any order

    Returns:
        New list ordered by timestamp

    Raises:
        MalformedDataError: two bars share a timestamp or a bar is inconsistent
    """
    ordered = sorted(bars, key=lambda b: b.timestamp)

    for previous, current in zip(ordered, ordered[1:]):
        if current.timestamp == previous.timestamp:
            raise MalformedDataError(
                "Duplicate bar timestamp",
                raw_data=current.timestamp.isoformat(),
                expected_format="strictly increasing timestamps",
                context={"symbol": current.symbol},
            )

    for bar in ordered:
        validate_bar(bar)

    return ordered
