"""Utility modules for the trading core."""

from .time import (
    Clock,
    ManualClock,
    elapsed_ms,
    ensure_utc,
    format_timestamp,
    minutes_between,
    parse_timestamp,
    utc_now,
)

__all__ = [
    "Clock",
    "ManualClock",
    "elapsed_ms",
    "ensure_utc",
    "format_timestamp",
    "minutes_between",
    "parse_timestamp",
    "utc_now",
]
