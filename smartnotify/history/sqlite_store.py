"""
Tool: SQLite History Store
Purpose: Notification history on a local SQLite database

Usage:
    from smartnotify.history.sqlite_store import SQLiteHistoryStore

    store = SQLiteHistoryStore()
    result = await store.record_sent("alice", "friend_post")
    await store.mark_read(result["history_id"])
    await store.mark_clicked(result["history_id"])

    rows = await store.fetch_recent("alice", limit=500)

The engine only reads. The writers exist for the app side (and tests)
that records what was sent and how the user reacted.

Timestamps are stored as UTC ISO strings and compared with julianday(),
so rows written with different offsets still order and count correctly.
"""

import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from smartnotify import HISTORY_DB_PATH
from smartnotify.errors import HistoryStoreError
from smartnotify.history.base import HistoryStore
from smartnotify.models import HistoryRecord
from smartnotify.timeutils import utc_isoformat


class SQLiteHistoryStore(HistoryStore):
    """notification_history table in data/history.db."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path) if db_path else HISTORY_DB_PATH

    def get_connection(self) -> sqlite3.Connection:
        """
        Get database connection, creating tables if needed.

        Returns:
            SQLite connection with row_factory set
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS notification_history (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                type TEXT NOT NULL,
                title TEXT,
                body TEXT,
                sent_at DATETIME NOT NULL,
                read_at DATETIME,
                clicked_at DATETIME,
                action_taken TEXT
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_history_user_sent "
            "ON notification_history(user_id, sent_at)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_history_user_type "
            "ON notification_history(user_id, type, sent_at)"
        )

        conn.commit()
        return conn

    # ─────────────────────────────────────────────────────────────────────
    # Reads (engine side)
    # ─────────────────────────────────────────────────────────────────────

    async def fetch_recent(self, user_id: str, limit: int) -> list[HistoryRecord]:
        try:
            conn = self.get_connection()
            try:
                rows = conn.execute(
                    """
                    SELECT id, user_id, type, sent_at, read_at, clicked_at, action_taken
                    FROM notification_history
                    WHERE user_id = ?
                    ORDER BY julianday(sent_at) DESC
                    LIMIT ?
                    """,
                    (user_id, limit),
                ).fetchall()
            finally:
                conn.close()
            return [HistoryRecord.from_row(dict(row)) for row in rows]
        except (sqlite3.Error, OSError, ValueError) as e:
            raise HistoryStoreError(f"fetch_recent failed: {e}") from e

    async def count_sent_since(
        self, user_id: str, notification_type: str, since: datetime
    ) -> int:
        try:
            conn = self.get_connection()
            try:
                row = conn.execute(
                    """
                    SELECT COUNT(*) as count
                    FROM notification_history
                    WHERE user_id = ? AND type = ? AND julianday(sent_at) >= julianday(?)
                    """,
                    (user_id, notification_type, utc_isoformat(since)),
                ).fetchone()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            raise HistoryStoreError(f"count_sent_since failed: {e}") from e

        return row["count"] if row else 0

    # ─────────────────────────────────────────────────────────────────────
    # Writes (app side)
    # ─────────────────────────────────────────────────────────────────────

    async def record_sent(
        self,
        user_id: str,
        notification_type: str,
        title: str | None = None,
        body: str | None = None,
        sent_at: datetime | None = None,
        history_id: str | None = None,
    ) -> dict:
        """
        Record that a notification was sent.

        Returns:
            {"success": True, "history_id": str}
        """
        log_id = history_id or f"hist_{uuid.uuid4().hex[:12]}"

        conn = self.get_connection()
        conn.execute(
            """
            INSERT INTO notification_history (id, user_id, type, title, body, sent_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                log_id,
                user_id,
                notification_type,
                title,
                body,
                utc_isoformat(sent_at or datetime.now(timezone.utc)),
            ),
        )
        conn.commit()
        conn.close()

        return {"success": True, "history_id": log_id}

    async def _stamp(self, history_id: str, column: str, at: datetime | None) -> dict:
        conn = self.get_connection()
        cursor = conn.cursor()
        cursor.execute(
            f"UPDATE notification_history SET {column} = ? WHERE id = ?",
            (utc_isoformat(at or datetime.now(timezone.utc)), history_id),
        )

        if cursor.rowcount == 0:
            conn.close()
            return {"success": False, "error": "History entry not found"}

        conn.commit()
        conn.close()
        return {"success": True}

    async def mark_read(self, history_id: str, at: datetime | None = None) -> dict:
        """Record that the user opened the notification."""
        return await self._stamp(history_id, "read_at", at)

    async def mark_clicked(self, history_id: str, at: datetime | None = None) -> dict:
        return await self._stamp(history_id, "clicked_at", at)

    async def record_action(self, history_id: str, action: str) -> dict:
        """Record an in-notification action (reply, accept, ...)."""
        conn = self.get_connection()
        cursor = conn.cursor()
        cursor.execute(
            "UPDATE notification_history SET action_taken = ? WHERE id = ?",
            (action, history_id),
        )

        if cursor.rowcount == 0:
            conn.close()
            return {"success": False, "error": "History entry not found"}

        conn.commit()
        conn.close()
        return {"success": True}
