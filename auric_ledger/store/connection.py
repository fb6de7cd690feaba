"""
Key-value store backends for alert rules and preferences.
"""

import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class KeyValueStore(ABC):
    """Flat string-keyed store, read on startup and written on every mutation."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass


class MemoryStore(KeyValueStore):
    """In-process store, used for tests and dry runs."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SqliteStore(KeyValueStore):
    """Keys and values in a single SQLite table."""

    def __init__(self, db_path: str):
        """
        Open the store.

        Args:
            db_path: SQLite file, created with its directory if missing; ":memory:" for a scratch store
        """
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise sqlite3.ProgrammingError("Store connection is closed")
        return self._conn

    def initialize(self) -> None:
        """Create the kv_store table on first use."""
        with self.connection:
            self.connection.execute(
                "CREATE TABLE IF NOT EXISTS kv_store ("
                " key TEXT PRIMARY KEY,"
                " value TEXT NOT NULL,"
                " modified TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
            )

    def get(self, key: str) -> Optional[str]:
        row = self.connection.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self.connection:
            self.connection.execute(
                "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "modified = CURRENT_TIMESTAMP",
                (key, value),
            )

    def remove(self, key: str) -> None:
        with self.connection:
            self.connection.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
