"""
Time helpers shared by the backtest engine, strategies and coordinator.

Bar timestamps are authoritative for anything computed from market data.
Wall-clock time is only used for lifecycle bookkeeping (last_* timestamps,
quote refresh intervals, cache expiry) and is always obtained through an
injectable clock so tests can control it.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive datetimes are assumed to already be expressed in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Union[datetime, str, int, float, None]) -> Optional[datetime]:
    """
    Parse a timestamp from the representations found in stored records.

    Args:
        value: datetime, ISO-8601 string, or epoch milliseconds

    Returns:
        UTC datetime, or None when value is None
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 representation used in persisted records."""
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def elapsed_ms(start: datetime, end: datetime) -> float:
    """Milliseconds between two timestamps (negative if end precedes start)."""
    return (end - start).total_seconds() * 1000.0


def minutes_between(start: datetime, end: datetime) -> float:
    """Minutes between two timestamps."""
    return (end - start).total_seconds() / 60.0


class ManualClock:
    """Clock whose current time is set explicitly, for replays and tests."""

    def __init__(self, start: Optional[datetime] = None):
        self._now = ensure_utc(start) if start is not None else utc_now()

    def __call__(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = ensure_utc(value)

    def advance(self, **kwargs: float) -> datetime:
        """Move the clock forward by a timedelta built from kwargs."""
        self._now = self._now + timedelta(**kwargs)
        return self._now
