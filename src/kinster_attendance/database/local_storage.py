from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from .connection import DatabaseConnection
from .sqlite_base import db_cursor, fetchall, fetchone

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS local_storage (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


class LocalStorage(Protocol):
    """String key/value storage, same contract as the browser's localStorage."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError


class SQLiteLocalStorage(LocalStorage):
    """Durable storage: one row per key in a SQLite file."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(SCHEMA_SQL)

    def get_item(self, key: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT value FROM local_storage WHERE key=?", (key,))
            row = fetchone(cur)
            return row["value"] if row else None

    def set_item(self, key: str, value: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT OR REPLACE INTO local_storage(key, value) VALUES(?, ?)",
                (key, value),
            )

    def remove_item(self, key: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM local_storage WHERE key=?", (key,))

    def keys(self) -> List[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT key FROM local_storage ORDER BY key")
            return [r["key"] for r in fetchall(cur)]


class InMemoryLocalStorage(LocalStorage):
    """Volatile storage for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._items)
