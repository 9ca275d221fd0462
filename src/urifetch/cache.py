"""Cache stores for fetch state.

Any object with ``get(key)`` and ``set(key, value)`` works as a cache; the
methods may be plain or async. ``get`` must return None for a missing key.
Blobs are unpickled on read, so a cache store must be trusted.
"""

import sqlite3
import threading
from pathlib import Path
from typing import Any, Protocol


class Cache(Protocol):
    """Protocol for pluggable cache stores."""

    def get(self, key: str) -> Any:
        """Return the stored blob, or None when absent."""
        ...

    def set(self, key: str, value: bytes) -> Any:
        """Store a blob, replacing any previous value."""
        ...


class MemoryCache:
    """In-process dict-backed cache."""

    def __init__(self):
        self._data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class SqliteCache:
    """Cache persisted in a SQLite key/blob table.

    The database file must not be writable by untrusted parties: its blobs
    are unpickled on every fetch.
    """

    def __init__(self, db_path: str | Path = ":memory:"):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        """Initialize SQLite tables."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS entries (
                key TEXT PRIMARY KEY,
                value BLOB NOT NULL
            )
        """)
        self.conn.commit()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            row = self.conn.execute(
                "SELECT value FROM entries WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self.conn.execute(
                "INSERT OR REPLACE INTO entries (key, value) VALUES (?, ?)",
                (key, sqlite3.Binary(value)),
            )
            self.conn.commit()

    def __len__(self) -> int:
        with self._lock:
            return self.conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]

    def close(self):
        """Close database connection."""
        self.conn.close()

    def __enter__(self) -> "SqliteCache":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
