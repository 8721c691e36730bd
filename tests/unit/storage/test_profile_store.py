"""Tests for smartnotify/storage/kv_store.py and profile_store.py"""

import json
from datetime import datetime

import pytest

from smartnotify.errors import StorageError
from smartnotify.models import (
    NotificationPersonalization,
    PersonalizationInsights,
    UserBehaviorData,
)
from smartnotify.storage.kv_store import SQLiteKeyValueStore
from smartnotify.storage.profile_store import ProfileStore, storage_key

NOW = datetime(2024, 3, 6, 10, 0)


class BrokenKeyValueStore(SQLiteKeyValueStore):
    """Every read and write fails."""

    def __init__(self):
        super().__init__(db_path=None)

    async def get_item(self, key):
        raise StorageError("disk on fire")

    async def set_item(self, key, value):
        raise StorageError("disk on fire")


@pytest.fixture
def store(kv_store, diagnostics):
    def sink(operation, user_id, error):
        diagnostics.append((operation, user_id, error))

    return ProfileStore(kv_store, on_error=sink)


@pytest.fixture
def broken_store(diagnostics):
    def sink(operation, user_id, error):
        diagnostics.append((operation, user_id, error))

    return ProfileStore(BrokenKeyValueStore(), on_error=sink)


class TestKeyValueStore:
    @pytest.mark.asyncio
    async def test_missing_key(self, kv_store):
        assert await kv_store.get_item("nope") is None

    @pytest.mark.asyncio
    async def test_set_overwrites(self, kv_store):
        await kv_store.set_item("k", "one")
        await kv_store.set_item("k", "two")
        assert await kv_store.get_item("k") == "two"

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path):
        kv = SQLiteKeyValueStore(tmp_path / "nested" / "dir" / "kv.db")
        await kv.set_item("k", "v")
        assert (tmp_path / "nested" / "dir" / "kv.db").exists()


class TestBehavior:
    def test_storage_key(self):
        assert storage_key("user_behavior_data", "alice") == "user_behavior_data_alice"

    @pytest.mark.asyncio
    async def test_unknown_user(self, store, mock_user_id):
        assert await store.get_behavior(mock_user_id) is None

    @pytest.mark.asyncio
    async def test_survives_restart(self, store, kv_store, mock_user_id):
        profile = UserBehaviorData.default(time_zone="Europe/Paris", now=NOW)
        profile.active_hours = [7, 21]
        await store.save_behavior(mock_user_id, profile)

        reloaded = await ProfileStore(kv_store).get_behavior(mock_user_id)
        assert reloaded == profile
        assert reloaded is not profile

    @pytest.mark.asyncio
    async def test_persisted_as_json(self, store, kv_store, mock_user_id):
        await store.save_behavior(mock_user_id, UserBehaviorData.default("UTC", NOW))
        raw = json.loads(await kv_store.get_item(f"user_behavior_data_{mock_user_id}"))
        assert raw["quiet_hours"] == {"start": 22, "end": 6}
        assert raw["device_usage_pattern"] == "mixed"
        assert raw["last_active_time"] == NOW.isoformat()

    @pytest.mark.asyncio
    async def test_corrupt_entry_reported(self, store, kv_store, mock_user_id, diagnostics):
        await kv_store.set_item(f"user_behavior_data_{mock_user_id}", "{not json")
        assert await store.get_behavior(mock_user_id) is None
        assert diagnostics[0][0] == "load behavior"

    @pytest.mark.asyncio
    async def test_write_failure_keeps_memory_copy(self, broken_store, mock_user_id, diagnostics):
        profile = UserBehaviorData.default("UTC", NOW)
        result = await broken_store.save_behavior(mock_user_id, profile)

        assert result["success"] is False
        assert await broken_store.get_behavior(mock_user_id) is profile
        assert diagnostics[0][0] == "persist user_behavior_data"


class TestPersonalization:
    @pytest.mark.asyncio
    async def test_seeded_with_defaults(self, store, mock_user_id):
        personalization = await store.get_personalization(mock_user_id)
        assert personalization == NotificationPersonalization(user_id=mock_user_id)
        assert personalization.custom_frequency["friend_post"] == 20
        assert await store.get_personalization(mock_user_id) is personalization

    @pytest.mark.asyncio
    async def test_survives_restart(self, store, kv_store, mock_user_id):
        personalization = NotificationPersonalization(
            user_id=mock_user_id, muted_types=["post_like"], custom_frequency={"reminder": 0}
        )
        personalization.content_preferences.short_messages = True
        await store.save_personalization(mock_user_id, personalization)

        reloaded = await ProfileStore(kv_store).get_personalization(mock_user_id)
        assert reloaded == personalization

    @pytest.mark.asyncio
    async def test_read_failure_seeds_defaults(self, broken_store, mock_user_id, diagnostics):
        personalization = await broken_store.get_personalization(mock_user_id)
        assert personalization.user_id == mock_user_id
        assert diagnostics[0][0] == "load personalization"


class TestInsights:
    @pytest.mark.asyncio
    async def test_round_trip(self, store, mock_user_id):
        insights = PersonalizationInsights(
            user_id=mock_user_id,
            best_engagement_time="6:00 PM",
            preferred_notification_types=["friend_post"],
            low_engagement_types=["reminder"],
            optimal_frequency={"friend_post": 20},
            behavior_pattern="You prefer afternoon notifications",
            recommendations=[],
            type_performance={"friend_post": {"sent": 2, "engaged": 1, "rate": 0.5}},
        )
        await store.save_insights(mock_user_id, insights)
        assert await store.get_insights(mock_user_id) == insights

    @pytest.mark.asyncio
    async def test_missing(self, store, mock_user_id):
        assert await store.get_insights(mock_user_id) is None
