"""SQLite-backed config store for configs and execution records that outlive the process."""

import json
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from ..errors import PersistenceError
from .config_store import ConfigStore


class SQLiteConfigStore(ConfigStore):
    """
    Key/value store persisted in a single SQLite table.

    Values are JSON-encoded. Expiry uses wall-clock epoch seconds so entries
    survive restarts; expired rows are ignored on read and removed by
    purge_expired.
    """

    def __init__(self, db_path: str = "algo_config.db", time_fn: Callable[[], float] = time.time):
        self.db_path = Path(db_path)
        self.logger = structlog.get_logger("persistence.sqlite_store")
        self._time_fn = time_fn
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS config_entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at REAL,
                    updated_at REAL NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_config_entries_expires_at ON config_entries(expires_at)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection, wrapping SQLite failures in PersistenceError."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", error=str(e), db_path=str(self.db_path))
            raise PersistenceError(
                f"Database error: {e}",
                operation="sqlite",
                target=str(self.db_path),
            ) from e
        finally:
            if conn:
                conn.close()

    def get(self, key: str) -> Optional[Any]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT value, expires_at FROM config_entries WHERE key = ?", (key,)
            ).fetchone()

        if row is None:
            return None
        if row["expires_at"] is not None and self._time_fn() >= row["expires_at"]:
            return None
        return json.loads(row["value"])

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        now = self._time_fn()
        expires_at = now + ttl if ttl is not None and ttl > 0 else None

        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise PersistenceError(
                f"Value for {key} is not JSON serializable",
                operation="set",
                target=key,
            ) from e

        with self._lock:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO config_entries (key, value, expires_at, updated_at)
                    VALUES (?, ?, ?, ?)
                """, (key, encoded, expires_at, now))
                conn.commit()

    def delete(self, key: str) -> bool:
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("DELETE FROM config_entries WHERE key = ?", (key,))
                conn.commit()
                return cursor.rowcount > 0

    def keys(self, prefix: str = "") -> list[str]:
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT key FROM config_entries
                WHERE key LIKE ? ESCAPE '\\' AND (expires_at IS NULL OR expires_at > ?)
                ORDER BY key
            """, (self._like_prefix(prefix), self._time_fn())).fetchall()
        return [row["key"] for row in rows]

    def clear(self) -> None:
        with self._lock:
            with self._get_connection() as conn:
                conn.execute("DELETE FROM config_entries")
                conn.commit()

    def purge_expired(self) -> int:
        """Delete expired rows, returning how many were removed."""
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM config_entries WHERE expires_at IS NOT NULL AND expires_at <= ?",
                    (self._time_fn(),)
                )
                conn.commit()
                removed = cursor.rowcount

        if removed:
            self.logger.info("Purged expired entries", removed=removed)
        return removed

    @staticmethod
    def _like_prefix(prefix: str) -> str:
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return f"{escaped}%"
