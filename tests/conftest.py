"""Shared test fixtures for SmartNotify tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- In-memory history store with failure injection
- Fixed clocks and engine construction

Usage:
    def test_something(temp_db):
        # temp_db is automatically cleaned up after the test
        ...
"""

import os
import random
import tempfile
from collections.abc import Generator
from datetime import datetime
from pathlib import Path

import pytest

from smartnotify.errors import HistoryStoreError
from smartnotify.history.base import HistoryStore
from smartnotify.models import HistoryRecord


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_DIR = PROJECT_ROOT / "smartnotify"


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


def make_record(
    notification_type: str = "friend_post",
    sent_at: datetime | None = None,
    read_at: datetime | None = None,
    clicked_at: datetime | None = None,
    action_taken: str | None = None,
) -> HistoryRecord:
    return HistoryRecord(
        type=notification_type,
        sent_at=sent_at,
        read_at=read_at,
        clicked_at=clicked_at,
        action_taken=action_taken,
    )


def fixed_clock(now: datetime):
    return lambda: now


class FakeHistoryStore(HistoryStore):
    """In-memory history store.

    Attributes:
        records: Rows returned by fetch_recent (already newest first)
        sent_today: Value returned by count_sent_since
        fail: When True every call raises HistoryStoreError
    """

    def __init__(self, records: list[HistoryRecord] | None = None, sent_today: int = 0):
        self.records = list(records or [])
        self.sent_today = sent_today
        self.fail = False
        self.fetch_calls: list[tuple[str, int]] = []
        self.count_calls: list[tuple[str, str, datetime]] = []

    async def fetch_recent(self, user_id: str, limit: int) -> list[HistoryRecord]:
        self.fetch_calls.append((user_id, limit))
        if self.fail:
            raise HistoryStoreError("history backend unavailable")
        return self.records[:limit]

    async def count_sent_since(self, user_id: str, notification_type: str, since: datetime) -> int:
        self.count_calls.append((user_id, notification_type, since))
        if self.fail:
            raise HistoryStoreError("history backend unavailable")
        return self.sent_today


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file for testing.

    The database file is automatically deleted after the test completes.

    Yields:
        Path to the temporary database file
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    if db_path.exists():
        os.unlink(db_path)


@pytest.fixture
def kv_store(tmp_path: Path):
    """SQLite key-value store in a temp directory."""
    from smartnotify.storage.kv_store import SQLiteKeyValueStore

    return SQLiteKeyValueStore(tmp_path / "kv.db")


@pytest.fixture
def sqlite_history(temp_db: Path):
    """SQLite history store on a temporary database."""
    from smartnotify.history.sqlite_store import SQLiteHistoryStore

    return SQLiteHistoryStore(temp_db)


@pytest.fixture
def fake_history() -> FakeHistoryStore:
    return FakeHistoryStore()


# ─────────────────────────────────────────────────────────────────────────────
# User / Clock Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_user_id() -> str:
    """Standard test user ID."""
    return "test_user_123"


@pytest.fixture
def diagnostics() -> list:
    """Collects (operation, user_id, error) tuples from the engine."""
    return []


@pytest.fixture
def make_engine(kv_store, fake_history, diagnostics):
    """Factory for engines sharing the fixture stores.

    Usage:
        engine = make_engine(now=datetime(2024, 3, 5, 14, 0))
    """
    from smartnotify.engine import NotificationEngine
    from smartnotify.storage.profile_store import ProfileStore

    def sink(operation, user_id, error):
        diagnostics.append((operation, user_id, error))

    def factory(now: datetime, history: HistoryStore | None = None, seed: int = 7):
        return NotificationEngine(
            history_store=history or fake_history,
            profile_store=ProfileStore(kv_store, on_error=sink),
            clock=fixed_clock(now),
            rng=random.Random(seed),
            on_error=sink,
        )

    return factory
