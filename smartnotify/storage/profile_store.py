"""
Tool: Profile Store
Purpose: Per-user cache of behavior profiles, personalization and insights

Usage:
    from smartnotify.storage.profile_store import ProfileStore

    store = ProfileStore(SQLiteKeyValueStore())
    profile = await store.get_behavior("alice")      # None if never analyzed
    prefs = await store.get_personalization("alice") # seeded with defaults

Entries live in memory for the lifetime of the store and are only replaced
by explicit save calls. Durable writes are best-effort: failures are
reported to the diagnostics sink and never raised.

Concurrency:
    No locking. Two coroutines saving the same user race and the last
    writer wins. Callers are expected to analyze a given user sequentially.
"""

import json
import logging

from smartnotify.errors import DiagnosticsSink, StorageError, log_diagnostic
from smartnotify.models import (
    NotificationPersonalization,
    PersonalizationInsights,
    UserBehaviorData,
)
from smartnotify.storage.kv_store import SQLiteKeyValueStore

logger = logging.getLogger(__name__)

# Durable key prefixes, suffixed with _<user_id>
USER_BEHAVIOR_KEY = "user_behavior_data"
PERSONALIZATION_KEY = "notification_personalization"
INSIGHTS_KEY = "personalization_insights"


def storage_key(kind: str, user_id: str) -> str:
    return f"{kind}_{user_id}"


class ProfileStore:
    """In-memory per-user maps in front of a durable key-value store."""

    def __init__(
        self,
        kv_store: SQLiteKeyValueStore | None = None,
        on_error: DiagnosticsSink | None = None,
    ):
        self.kv_store = kv_store or SQLiteKeyValueStore()
        self.on_error = on_error or log_diagnostic
        self._behavior: dict[str, UserBehaviorData] = {}
        self._personalization: dict[str, NotificationPersonalization] = {}

    # ─────────────────────────────────────────────────────────────────────
    # Durable helpers
    # ─────────────────────────────────────────────────────────────────────

    async def _load(self, kind: str, user_id: str) -> dict:
        """Read and decode a durable entry. Returns a result dict, never raises."""
        try:
            raw = await self.kv_store.get_item(storage_key(kind, user_id))
            if raw is None:
                return {"success": True, "data": None}
            return {"success": True, "data": json.loads(raw)}
        except (StorageError, json.JSONDecodeError) as e:
            return {"success": False, "error": e}

    async def _persist(self, kind: str, user_id: str, payload: dict) -> dict:
        try:
            await self.kv_store.set_item(storage_key(kind, user_id), json.dumps(payload))
        except (StorageError, TypeError, ValueError) as e:
            self.on_error(f"persist {kind}", user_id, e)
            return {"success": False, "error": str(e)}
        return {"success": True}

    # ─────────────────────────────────────────────────────────────────────
    # Behavior profiles
    # ─────────────────────────────────────────────────────────────────────

    async def get_behavior(self, user_id: str) -> UserBehaviorData | None:
        """Cached profile, else the persisted one, else None."""
        if user_id in self._behavior:
            return self._behavior[user_id]

        result = await self._load(USER_BEHAVIOR_KEY, user_id)
        if not result["success"]:
            self.on_error("load behavior", user_id, result["error"])
            return None
        if result["data"] is None:
            return None

        try:
            profile = UserBehaviorData.from_dict(result["data"])
        except (KeyError, TypeError, ValueError) as e:
            self.on_error("decode behavior", user_id, e)
            return None

        self._behavior[user_id] = profile
        return profile

    async def save_behavior(self, user_id: str, profile: UserBehaviorData) -> dict:
        self._behavior[user_id] = profile
        return await self._persist(USER_BEHAVIOR_KEY, user_id, profile.to_dict())

    # ─────────────────────────────────────────────────────────────────────
    # Personalization
    # ─────────────────────────────────────────────────────────────────────

    async def get_personalization(self, user_id: str) -> NotificationPersonalization:
        """Cached or persisted personalization; defaults are seeded on first access."""
        if user_id in self._personalization:
            return self._personalization[user_id]

        personalization = None
        result = await self._load(PERSONALIZATION_KEY, user_id)
        if not result["success"]:
            self.on_error("load personalization", user_id, result["error"])
        elif result["data"] is not None:
            try:
                personalization = NotificationPersonalization.from_dict(result["data"])
            except (KeyError, TypeError, ValueError) as e:
                self.on_error("decode personalization", user_id, e)

        if personalization is None:
            personalization = NotificationPersonalization(user_id=user_id)

        self._personalization[user_id] = personalization
        return personalization

    async def save_personalization(
        self, user_id: str, personalization: NotificationPersonalization
    ) -> dict:
        self._personalization[user_id] = personalization
        return await self._persist(PERSONALIZATION_KEY, user_id, personalization.to_dict())

    # ─────────────────────────────────────────────────────────────────────
    # Insights (durable only; recomputed on every request)
    # ─────────────────────────────────────────────────────────────────────

    async def get_insights(self, user_id: str) -> PersonalizationInsights | None:
        result = await self._load(INSIGHTS_KEY, user_id)
        if not result["success"]:
            self.on_error("load insights", user_id, result["error"])
            return None
        if result["data"] is None:
            return None
        try:
            return PersonalizationInsights.from_dict(result["data"])
        except (KeyError, TypeError, ValueError) as e:
            self.on_error("decode insights", user_id, e)
            return None

    async def save_insights(self, user_id: str, insights: PersonalizationInsights) -> dict:
        return await self._persist(INSIGHTS_KEY, user_id, insights.to_dict())
