"""
Blob Store

String key -> JSON value storage for the tracker's local state.
SQLite file by default, with an in-memory variant for tests.
Simple, file-based, no external dependencies.
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Optional


# Logical keys
AI_SETTINGS_KEY = "carbontrackr_ai_settings"
DAILY_TIP_KEY = "carbontrackr_daily_tip"
STATS_KEY = "carbontrackr_stats"
TRENDS_KEY = "carbontrackr_trends"

# Default database file location (override with CARBONTRACKR_DB_PATH)
DB_PATH = os.path.join(os.path.dirname(__file__), "..", "..", "data", "carbontrackr.db")


class StorageError(Exception):
    """Raised when the backing store cannot be read or written."""


class CorruptValueError(StorageError):
    """Stored value exists but is not valid JSON."""


class BlobStore:
    """
    Key-value contract used by every persistent component.

    get() returns None for missing keys. Implementations raise
    StorageError for unavailable storage and CorruptValueError for
    undecodable values.
    """

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any):
        raise NotImplementedError

    def remove(self, key: str):
        raise NotImplementedError


class InMemoryBlobStore(BlobStore):
    """
    Dictionary-backed store.

    Values are kept as JSON text so they round-trip exactly like
    the SQLite store.
    """

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CorruptValueError(f"Corrupt value for {key}: {e}") from e

    def set(self, key: str, value: Any):
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key} is not JSON serializable: {e}") from e

    def remove(self, key: str):
        self._data.pop(key, None)

    def set_raw(self, key: str, raw: str):
        """Store raw text without encoding (used to simulate corruption)."""
        self._data[key] = raw


class SqliteBlobStore(BlobStore):
    """SQLite-backed store with one kv_store table."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or os.getenv("CARBONTRACKR_DB_PATH", DB_PATH)
        self.init_database()

    def init_database(self):
        """Initialize database with required tables."""
        try:
            directory = os.path.dirname(os.path.abspath(self.db_path))
            os.makedirs(directory, exist_ok=True)
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot initialize {self.db_path}: {e}") from e

    @contextmanager
    def get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def get(self, key: str) -> Optional[Any]:
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read {key}: {e}") from e

        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except ValueError as e:
            raise CorruptValueError(f"Corrupt value for {key}: {e}") from e

    def set(self, key: str, value: Any):
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key} is not JSON serializable: {e}") from e

        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, raw),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot write {key}: {e}") from e

    def remove(self, key: str):
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot remove {key}: {e}") from e
