"""Config store contract and its in-memory and SQLite implementations."""

from .config_store import ConfigStore, InMemoryConfigStore
from .sqlite_store import SQLiteConfigStore

__all__ = ["ConfigStore", "InMemoryConfigStore", "SQLiteConfigStore"]
