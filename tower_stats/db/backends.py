"""
Key-value backends for the record store.

The store keeps each collection as one JSON string under a fixed key.
Backends only move strings in and out; they know nothing about runs or
milestones, so tests can swap in MemoryBackend for SQLite.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueBackend(Protocol):
    """Protocol for persistent string storage."""

    def get(self, key: str) -> Optional[str]:
        """Stored value for key, or None."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    def remove(self, key: str) -> None:
        """Remove key. No-op if absent."""
        ...

    def remove_prefix(self, prefix: str) -> int:
        """Remove every key starting with prefix. Returns count removed."""
        ...

    def keys(self, prefix: str = "") -> list[str]:
        """All stored keys starting with prefix, sorted."""
        ...


class MemoryBackend:
    """In-process backend. Nothing survives the process."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def remove_prefix(self, prefix: str) -> int:
        doomed = [k for k in self._data if k.startswith(prefix)]
        for key in doomed:
            del self._data[key]
        return len(doomed)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class SqliteBackend:
    """SQLite-backed key-value area (one row per key)."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)

    def connect(self) -> sqlite3.Connection:
        """Create a database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def ensure_schema(self) -> None:
        """Initialize database schema from schema.sql."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        schema_path = Path(__file__).with_name("schema.sql")
        sql = schema_path.read_text(encoding="utf-8")
        with self.connect() as conn:
            conn.executescript(sql)
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?",
                (key,)
            ).fetchone()
        if not row:
            return None
        return row["value"]

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, now)
            )
            conn.commit()

    def remove(self, key: str) -> None:
        with self.connect() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()

    def remove_prefix(self, prefix: str) -> int:
        with self.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM kv_store WHERE substr(key, 1, length(?)) = ?",
                (prefix, prefix)
            )
            conn.commit()
        return cursor.rowcount

    def keys(self, prefix: str = "") -> list[str]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT key FROM kv_store WHERE substr(key, 1, length(?)) = ? ORDER BY key",
                (prefix, prefix)
            ).fetchall()
        return [row["key"] for row in rows]


def create_backend(db_path: str | Path | None = None) -> KeyValueBackend:
    """Factory: SqliteBackend for a file path, MemoryBackend otherwise.

    A database that can't be initialized is still returned: reads through
    the record store come back empty and writes raise.
    """
    if db_path is None or str(db_path) == ":memory:":
        logger.info("Using in-memory record storage")
        return MemoryBackend()
    backend = SqliteBackend(db_path)
    try:
        backend.ensure_schema()
    except (sqlite3.Error, OSError) as e:
        logger.warning("Could not initialize %s (%s); storage unavailable", db_path, e)
    return backend
