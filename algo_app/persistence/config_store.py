"""
Key/value store for algorithm configs, states and execution records.

Stores are injected into each component; there is no process-wide cache.
Values are copied on the way in and out, so callers never share mutable
state through the store.
"""

import copy
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class ConfigStore(ABC):
    """Key/value store with optional per-entry TTL in seconds."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Stored value, None when missing or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store a JSON-compatible value; ttl None or <= 0 keeps it until deleted."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a key, returning whether it existed."""

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        """Live keys starting with prefix."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""


class InMemoryConfigStore(ConfigStore):
    """Thread-safe dictionary store with monotonic-clock expiry."""

    def __init__(self, time_fn: Callable[[], float] = time.monotonic):
        self._time_fn = time_fn
        self._entries: dict[str, tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and self._time_fn() >= expires_at

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._expired(expires_at):
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        expires_at = self._time_fn() + ttl if ttl is not None and ttl > 0 else None
        with self._lock:
            self._entries[key] = (copy.deepcopy(value), expires_at)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            expired = [k for k, (_, exp) in self._entries.items() if self._expired(exp)]
            for key in expired:
                del self._entries[key]
            return sorted(k for k in self._entries if k.startswith(prefix))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("Config store cleared")
