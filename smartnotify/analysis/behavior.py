"""
Tool: Behavior Analyzer
Purpose: Derive a UserBehaviorData profile from notification history

Only rows with a read timestamp feed the hour and day histograms: the
profile models when a user engages, not when they were sent something.

Signals:
    active_hours      top 8 read hours (rank_buckets)
    preferred_days    top 4 read days, 0 = Sunday (rank_buckets)
    avg_response_time mean read - sent in minutes over rows with both
    engagement_rate   clicked or acted upon / rows fetched
    quiet_hours       least-read 8-hour circular window (find_quiet_window)
    usage pattern     busiest part of the day (pick_usage_pattern)

Usage:
    analyzer = BehaviorAnalyzer(history_store, profile_store)
    profile = await analyzer.analyze("alice")
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

from smartnotify.analysis.ranking import (
    find_quiet_window,
    frequency_preference,
    pick_usage_pattern,
    rank_buckets,
)
from smartnotify.errors import DiagnosticsSink, HistoryStoreError, log_diagnostic
from smartnotify.history.base import HistoryStore
from smartnotify.models import (
    MAX_ACTIVE_HOURS,
    MAX_PREFERRED_DAYS,
    HistoryRecord,
    QuietHours,
    UserBehaviorData,
    clamp_unit,
)
from smartnotify.storage.profile_store import ProfileStore
from smartnotify.timeutils import Clock, day_of_week, localize, system_clock, zone_name

logger = logging.getLogger(__name__)

DEFAULT_RESPONSE_MINUTES = 60.0


def build_histograms(
    records: Sequence[HistoryRecord], tz: ZoneInfo | None = None
) -> tuple[list[int], list[int]]:
    """24-bucket hour and 7-bucket day histograms of read times."""
    hour_counts = [0] * 24
    day_counts = [0] * 7
    for record in records:
        if record.read_at is None:
            continue
        read_at = localize(record.read_at, tz)
        hour_counts[read_at.hour] += 1
        day_counts[day_of_week(read_at)] += 1
    return hour_counts, day_counts


def average_response_minutes(records: Sequence[HistoryRecord]) -> float:
    deltas = []
    for record in records:
        if record.sent_at is None or record.read_at is None:
            continue
        # Can't subtract naive from aware; such rows carry no usable delta
        if (record.sent_at.tzinfo is None) != (record.read_at.tzinfo is None):
            continue
        deltas.append((record.read_at - record.sent_at).total_seconds() / 60)

    if not deltas:
        return DEFAULT_RESPONSE_MINUTES
    return sum(deltas) / len(deltas)


def engagement_rate(records: Sequence[HistoryRecord]) -> float:
    if not records:
        return 0.5
    engaged = sum(1 for record in records if record.engaged)
    return clamp_unit(engaged / len(records))


def build_profile(
    records: Sequence[HistoryRecord],
    now: datetime,
    time_zone: str,
    tz: ZoneInfo | None = None,
) -> UserBehaviorData:
    """
    Compute a profile from history rows (newest first).

    Pure function: no I/O, no caching. Empty input yields the default profile.
    """
    if not records:
        return UserBehaviorData.default(time_zone=time_zone, now=now)

    hour_counts, day_counts = build_histograms(records, tz)
    rate = engagement_rate(records)

    return UserBehaviorData(
        active_hours=rank_buckets(hour_counts, MAX_ACTIVE_HOURS),
        preferred_days=rank_buckets(day_counts, MAX_PREFERRED_DAYS),
        avg_response_time=average_response_minutes(records),
        engagement_rate=rate,
        quiet_hours=QuietHours.starting_at(find_quiet_window(hour_counts)),
        device_usage_pattern=pick_usage_pattern(hour_counts),
        notification_frequency_preference=frequency_preference(rate),
        last_active_time=now,
        time_zone=time_zone,
    )


class BehaviorAnalyzer:
    """Fetches history, builds the profile, caches and persists it."""

    def __init__(
        self,
        history_store: HistoryStore,
        profile_store: ProfileStore,
        clock: Clock | None = None,
        tz: ZoneInfo | None = None,
        history_limit: int = 500,
        on_error: DiagnosticsSink | None = None,
    ):
        self.history_store = history_store
        self.profile_store = profile_store
        self.tz = tz
        self.clock = clock or system_clock(tz)
        self.history_limit = history_limit
        self.on_error = on_error or log_diagnostic

    def default_profile(self) -> UserBehaviorData:
        return UserBehaviorData.default(time_zone=zone_name(self.tz), now=self.clock())

    async def _fetch(self, user_id: str) -> dict:
        try:
            records = await self.history_store.fetch_recent(user_id, self.history_limit)
        except HistoryStoreError as e:
            return {"success": False, "error": e}
        return {"success": True, "records": records}

    async def analyze(self, user_id: str) -> UserBehaviorData:
        """
        Recompute the user's profile from history.

        Never raises. A failed fetch returns the default profile and leaves
        any previously cached profile in place.
        """
        result = await self._fetch(user_id)
        if not result["success"]:
            self.on_error("analyze behavior", user_id, result["error"])
            return self.default_profile()

        records = result["records"]
        if not records:
            logger.debug(f"No history for {user_id}; using default profile")
            return self.default_profile()

        try:
            profile = build_profile(records, self.clock(), zone_name(self.tz), self.tz)
        except (TypeError, ValueError) as e:
            self.on_error("analyze behavior", user_id, e)
            return self.default_profile()

        await self.profile_store.save_behavior(user_id, profile)
        logger.info(
            f"Analyzed {len(records)} history rows for {user_id}: "
            f"pattern={profile.device_usage_pattern.value} "
            f"engagement={profile.engagement_rate:.2f}"
        )
        return profile
