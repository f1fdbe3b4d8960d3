"""
SQLite key-value storage for local application state.

This module provides a small crash-safe store of string values keyed by
name. It stands in for a host platform's local storage: each value is one
serialized document and every write replaces it entirely.
"""

import logging
import sqlite3
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Interface the history store persists through."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage, used for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class SQLiteStorage:
    """
    SQLite-backed key-value storage.

    Uses WAL mode and commits every write immediately so a crash never
    leaves a half-written value behind.
    """

    def __init__(self, db_path: Path | str = "local_storage.db"):
        self.db_path = str(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self) -> sqlite3.Connection:
        """Initialize database connection with WAL mode."""
        if self._conn is None:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, timeout=30.0)

            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")

            self._create_table()

        return self._conn

    def close(self):
        """Close database connection."""
        if self._conn:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                logger.warning(f"Error closing database connection: {e}")
            finally:
                self._conn = None

    def _create_table(self):
        create_sql = """
        CREATE TABLE IF NOT EXISTS kv_store (
            key        TEXT PRIMARY KEY,
            value      TEXT NOT NULL,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
        """
        with self._lock:
            self._conn.execute(create_sql)
            self._conn.commit()

    def _retry_operation(self, operation, max_retries: int = 3):
        """Retry database operations with exponential backoff."""
        for attempt in range(max_retries):
            try:
                return operation()
            except sqlite3.OperationalError as e:
                if "database is locked" in str(e).lower() and attempt < max_retries - 1:
                    wait_time = (2 ** attempt) * 0.1  # 0.1, 0.2, 0.4 seconds
                    logger.warning(f"Database locked, retrying in {wait_time}s (attempt {attempt + 1})")
                    time.sleep(wait_time)
                else:
                    raise

    def get(self, key: str) -> Optional[str]:
        def operation():
            with self._lock:
                cursor = self.connect().execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                row = cursor.fetchone()
                return row[0] if row else None

        return self._retry_operation(operation)

    def set(self, key: str, value: str) -> None:
        def operation():
            with self._lock:
                conn = self.connect()
                conn.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                    (key, value, datetime.now().isoformat())
                )
                conn.commit()

        self._retry_operation(operation)
        logger.debug(f"Stored {len(value)} chars under '{key}'")

    def delete(self, key: str) -> None:
        def operation():
            with self._lock:
                conn = self.connect()
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()

        self._retry_operation(operation)
        logger.debug(f"Deleted '{key}'")


def open_storage(path: Path | str) -> SQLiteStorage:
    """Initialize and return a connected SQLiteStorage instance."""
    storage = SQLiteStorage(path)
    storage.connect()
    return storage
