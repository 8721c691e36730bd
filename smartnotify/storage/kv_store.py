"""
Tool: Key-Value Store
Purpose: Durable string-keyed blob storage for cached engine state

Usage:
    from smartnotify.storage.kv_store import SQLiteKeyValueStore

    store = SQLiteKeyValueStore()
    await store.set_item("user_behavior_data_alice", json.dumps(profile))
    raw = await store.get_item("user_behavior_data_alice")

All errors surface as StorageError; callers decide whether they matter.
"""

import sqlite3
from datetime import datetime
from pathlib import Path

from smartnotify import KV_DB_PATH
from smartnotify.errors import StorageError


class SQLiteKeyValueStore:
    """Async-facing key-value store backed by a single SQLite table."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path) if db_path else KV_DB_PATH

    def get_connection(self) -> sqlite3.Connection:
        """
        Get database connection, creating the table if needed.

        Returns:
            SQLite connection with row_factory set
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()
        return conn

    async def get_item(self, key: str) -> str | None:
        """Return the stored blob for ``key`` or None."""
        try:
            conn = self.get_connection()
            try:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"get_item({key!r}) failed: {e}") from e

        return row["value"] if row else None

    async def set_item(self, key: str, value: str) -> None:
        """Insert or replace the blob for ``key``."""
        try:
            conn = self.get_connection()
            try:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, datetime.now().isoformat()),
                )
                conn.commit()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"set_item({key!r}) failed: {e}") from e

