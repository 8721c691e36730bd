"""
Tool: Notification Engine
Purpose: Single entry point for behavior analysis, timing, gating,
         personalization and insights

Usage:
    from smartnotify.engine import NotificationEngine

    engine = NotificationEngine.from_config()
    await engine.analyze_user_behavior("alice")

    decision = await engine.should_send_notification_now("alice", "friend_post", "medium")
    if decision.should_send:
        notification = await engine.personalize_notification_content("alice", notification)
    else:
        timing = await engine.get_optimal_notification_time("alice", "friend_post")

Error semantics:
    Every public method returns a value and never raises.
    - should_send_notification_now fails open (send)
    - get_optimal_notification_time falls back to now + 5 minutes
    - personalize_notification_content returns the input unchanged
    - analyze_user_behavior returns the default profile
    - generate_personalization_insights returns the last cached insights,
      or insights built without per-type history
    Each absorbed failure is passed to the ``on_error`` diagnostics sink.

Concurrency:
    Construct one engine per process and pass it where it is needed. Methods
    are independent coroutines with no locking. Analyzing the same user from
    two coroutines at once is not supported: the last write wins. Calls have
    no built-in timeout; wrap them in asyncio.wait_for() if you need one.
"""

import dataclasses
import logging
import random
from zoneinfo import ZoneInfo

from smartnotify.analysis.behavior import BehaviorAnalyzer
from smartnotify.analysis.insights import InsightsGenerator, build_insights
from smartnotify.config import EngineConfig, SmartNotifyConfig, load_config, resolve_path
from smartnotify.content.personalizer import ContentPersonalizer
from smartnotify.delivery.gate import DeliveryGate
from smartnotify.delivery.timing import TimingRecommender
from smartnotify.errors import DiagnosticsSink, log_diagnostic
from smartnotify.history import HistoryStore, build_history_store
from smartnotify.models import (
    DeliveryDecision,
    NotificationEvent,
    NotificationPersonalization,
    OptimalTiming,
    PersonalizationInsights,
    Urgency,
    UserBehaviorData,
)
from smartnotify.storage.kv_store import SQLiteKeyValueStore
from smartnotify.storage.profile_store import ProfileStore
from smartnotify.timeutils import Clock, load_zone, system_clock

logger = logging.getLogger(__name__)

PERSONALIZATION_FIELDS = {
    "preferred_types",
    "muted_types",
    "custom_frequency",
    "content_preferences",
    "delivery_preferences",
}


class NotificationEngine:
    """
    Args:
        history_store: Read access to notification history
        profile_store: Per-user cache (defaults to the SQLite KV store)
        config: Engine tunables; defaults when omitted
        clock: Returns "now"; defaults to the wall clock in ``tz``
        tz: Zone for hour/day bucketing; None = host local time
        rng: Jitter source for scheduled times
        on_error: Diagnostics sink called with (operation, user_id, error)
    """

    def __init__(
        self,
        history_store: HistoryStore,
        profile_store: ProfileStore | None = None,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        tz: ZoneInfo | None = None,
        rng: random.Random | None = None,
        on_error: DiagnosticsSink | None = None,
    ):
        self.config = config or EngineConfig()
        self.on_error = on_error or log_diagnostic
        self.tz = tz if tz is not None else load_zone(self.config.timezone)
        self.clock = clock or system_clock(self.tz)

        self.history_store = history_store
        self.profile_store = profile_store or ProfileStore(on_error=self.on_error)

        self.analyzer = BehaviorAnalyzer(
            history_store,
            self.profile_store,
            clock=self.clock,
            tz=self.tz,
            history_limit=self.config.history_limit,
            on_error=self.on_error,
        )
        self.timing = TimingRecommender(
            rng=rng,
            jitter_minutes=self.config.jitter_minutes,
            fallback_delay_minutes=self.config.fallback_delay_minutes,
        )
        self.gate = DeliveryGate(history_store, on_error=self.on_error)
        self.personalizer = ContentPersonalizer()
        self.insights = InsightsGenerator(
            history_store, history_limit=self.config.insights_history_limit
        )

    @classmethod
    def from_config(
        cls,
        config: SmartNotifyConfig | None = None,
        on_error: DiagnosticsSink | None = None,
    ) -> "NotificationEngine":
        """Build an engine with the stores named in args/smartnotify.yaml."""
        config = config or load_config()
        sink = on_error or log_diagnostic
        kv_store = SQLiteKeyValueStore(resolve_path(config.storage.kv_db_path))
        return cls(
            history_store=build_history_store(config.history),
            profile_store=ProfileStore(kv_store, on_error=sink),
            config=config.engine,
            on_error=sink,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Cached state
    # ─────────────────────────────────────────────────────────────────────

    async def get_behavior_data(self, user_id: str) -> UserBehaviorData:
        """Cached profile, else the persisted one, else the default profile."""
        profile = await self.profile_store.get_behavior(user_id)
        return profile or self.analyzer.default_profile()

    async def get_personalization(self, user_id: str) -> NotificationPersonalization:
        return await self.profile_store.get_personalization(user_id)

    async def update_personalization(self, user_id: str, /, **updates) -> dict:
        """
        Change a user's personalization.

        Nested preference dicts and custom_frequency are merged into the
        current values; lists replace.

        Returns:
            {"success": True, "personalization": dict} or {"success": False, "error": str}
        """
        invalid_fields = set(updates) - PERSONALIZATION_FIELDS
        if invalid_fields:
            return {"success": False, "error": f"Invalid fields: {sorted(invalid_fields)}"}

        current = await self.get_personalization(user_id)
        try:
            updated = _apply_personalization_updates(current, updates)
        except (TypeError, ValueError) as e:
            return {"success": False, "error": str(e)}

        await self.profile_store.save_personalization(user_id, updated)
        return {"success": True, "personalization": updated.to_dict()}

    # ─────────────────────────────────────────────────────────────────────
    # Entry points
    # ─────────────────────────────────────────────────────────────────────

    async def analyze_user_behavior(self, user_id: str) -> UserBehaviorData:
        try:
            return await self.analyzer.analyze(user_id)
        except Exception as e:
            self.on_error("analyze_user_behavior", user_id, e)
            return self.analyzer.default_profile()

    async def get_optimal_notification_time(
        self,
        user_id: str,
        notification_type: str,
        urgency: Urgency | str = Urgency.MEDIUM,
    ) -> OptimalTiming:
        try:
            profile = await self.get_behavior_data(user_id)
            personalization = await self.get_personalization(user_id)
            timing = self.timing.recommend(profile, personalization, urgency, self.clock())
            logger.debug(
                f"Timing for {user_id}/{notification_type}: "
                f"{timing.recommended_time.isoformat()} ({timing.reason})"
            )
            return timing
        except Exception as e:
            self.on_error("get_optimal_notification_time", user_id, e)
            return self.timing.fallback(self._now())

    async def personalize_notification_content(
        self, user_id: str, notification: NotificationEvent
    ) -> NotificationEvent:
        try:
            profile = await self.get_behavior_data(user_id)
            personalization = await self.get_personalization(user_id)
            return self.personalizer.personalize(
                notification, profile, personalization, self.clock()
            )
        except Exception as e:
            self.on_error("personalize_notification_content", user_id, e)
            return notification

    async def should_send_notification_now(
        self,
        user_id: str,
        notification_type: str,
        urgency: Urgency | str = Urgency.MEDIUM,
    ) -> DeliveryDecision:
        try:
            profile = await self.get_behavior_data(user_id)
            personalization = await self.get_personalization(user_id)
            return await self.gate.decide(
                user_id, notification_type, urgency, profile, personalization, self.clock()
            )
        except Exception as e:
            self.on_error("should_send_notification_now", user_id, e)
            return self.gate.fail_open()

    async def generate_personalization_insights(self, user_id: str) -> PersonalizationInsights:
        try:
            profile = await self.get_behavior_data(user_id)
            personalization = await self.get_personalization(user_id)
            insights = await self.insights.generate(user_id, profile, personalization)
        except Exception as e:
            self.on_error("generate_personalization_insights", user_id, e)
            return await self._fallback_insights(user_id)

        await self.profile_store.save_insights(user_id, insights)
        return insights

    def _now(self):
        """The injected clock, or the wall clock when the injected one fails."""
        try:
            return self.clock()
        except Exception as e:
            logger.warning(f"Clock failed, using system time: {e}")
            return system_clock(self.tz)()

    async def _fallback_insights(self, user_id: str) -> PersonalizationInsights:
        """Last cached insights, else insights from the profile alone."""
        cached = await self.profile_store.get_insights(user_id)
        if cached is not None:
            return cached
        profile = await self.get_behavior_data(user_id)
        personalization = await self.get_personalization(user_id)
        return build_insights(user_id, [], profile, personalization)


def _merge_preferences(current, updates: dict, label: str):
    if not isinstance(updates, dict):
        raise TypeError(f"{label} must be a mapping")
    known = {f.name for f in dataclasses.fields(current)}
    unknown = set(updates) - known
    if unknown:
        raise ValueError(f"Unknown {label} keys: {sorted(unknown)}")
    for key, value in updates.items():
        if not isinstance(value, bool):
            raise TypeError(f"{label}.{key} must be a boolean")
    return dataclasses.replace(current, **updates)


def _apply_personalization_updates(
    current: NotificationPersonalization, updates: dict
) -> NotificationPersonalization:
    changes = {}

    for list_field in ("preferred_types", "muted_types"):
        if list_field in updates:
            values = updates[list_field]
            if not isinstance(values, (list, tuple)) or not all(isinstance(v, str) for v in values):
                raise TypeError(f"{list_field} must be a list of type names")
            changes[list_field] = list(dict.fromkeys(values))

    if "custom_frequency" in updates:
        caps = updates["custom_frequency"]
        if not isinstance(caps, dict):
            raise TypeError("custom_frequency must be a mapping")
        merged = dict(current.custom_frequency)
        for notification_type, cap in caps.items():
            if isinstance(cap, bool) or not isinstance(cap, int) or cap < 0:
                raise ValueError(f"Cap for {notification_type} must be a non-negative integer")
            merged[notification_type] = cap
        changes["custom_frequency"] = merged

    if "content_preferences" in updates:
        changes["content_preferences"] = _merge_preferences(
            current.content_preferences, updates["content_preferences"], "content_preferences"
        )
    if "delivery_preferences" in updates:
        changes["delivery_preferences"] = _merge_preferences(
            current.delivery_preferences, updates["delivery_preferences"], "delivery_preferences"
        )

    return dataclasses.replace(current, **changes)
