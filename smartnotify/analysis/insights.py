"""
Tool: Insights Generator
Purpose: Summarize per-type engagement into display-ready recommendations

Usage:
    generator = InsightsGenerator(history_store)
    insights = await generator.generate("alice", profile, personalization)

Raises HistoryStoreError if history can't be read; the engine decides the
fallback.
"""

from collections.abc import Sequence

from smartnotify.history.base import HistoryStore
from smartnotify.models import (
    HistoryRecord,
    NotificationPersonalization,
    PersonalizationInsights,
    UsagePattern,
    UserBehaviorData,
)

DEFAULT_BEST_HOUR = 9
TOP_TYPES = 3
BOTTOM_TYPES = 2
LOW_ENGAGEMENT_RATE = 0.3
SLOW_RESPONSE_MINUTES = 4 * 60

BEHAVIOR_PATTERNS: dict[UsagePattern, str] = {
    UsagePattern.MORNING: "You're most active in the morning hours",
    UsagePattern.AFTERNOON: "You prefer afternoon notifications",
    UsagePattern.EVENING: "You're most engaged during evening hours",
    UsagePattern.NIGHT: "You're a night owl - active during late hours",
    UsagePattern.MIXED: "You have varied activity patterns throughout the day",
}


def format_hour(hour: int) -> str:
    """12-hour clock label, e.g. 18 -> '6:00 PM', 0 -> '12:00 AM'."""
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:00 {suffix}"


def type_performance(records: Sequence[HistoryRecord]) -> dict[str, dict]:
    """{type: {"sent", "engaged", "rate"}} in order of first appearance."""
    performance: dict[str, dict] = {}
    for record in records:
        stats = performance.setdefault(record.type, {"sent": 0, "engaged": 0, "rate": 0.0})
        stats["sent"] += 1
        if record.engaged:
            stats["engaged"] += 1

    for stats in performance.values():
        stats["rate"] = stats["engaged"] / stats["sent"] if stats["sent"] else 0.0
    return performance


def rank_types(performance: dict[str, dict]) -> list[str]:
    """Types by engagement rate, best first; ties keep first-appearance order."""
    return sorted(performance, key=lambda t: -performance[t]["rate"])


def build_recommendations(profile: UserBehaviorData, low_engagement_types: list[str]) -> list[str]:
    recommendations = []
    if profile.engagement_rate < LOW_ENGAGEMENT_RATE:
        recommendations.append(
            "Consider reducing notification frequency to improve engagement"
        )
    if profile.avg_response_time > SLOW_RESPONSE_MINUTES:
        recommendations.append(
            "Your notifications might be better timed - try adjusting delivery hours"
        )
    if low_engagement_types:
        recommendations.append(
            f"Consider muting {low_engagement_types[0]} notifications to reduce noise"
        )
    return recommendations


def build_insights(
    user_id: str,
    records: Sequence[HistoryRecord],
    profile: UserBehaviorData,
    personalization: NotificationPersonalization,
) -> PersonalizationInsights:
    performance = type_performance(records)
    ranked = rank_types(performance)
    # Lowest rate first
    low_engagement = list(reversed(ranked[-BOTTOM_TYPES:]))

    best_hour = profile.active_hours[0] if profile.active_hours else DEFAULT_BEST_HOUR

    return PersonalizationInsights(
        user_id=user_id,
        best_engagement_time=format_hour(best_hour),
        preferred_notification_types=ranked[:TOP_TYPES],
        low_engagement_types=low_engagement,
        optimal_frequency=dict(personalization.custom_frequency),
        behavior_pattern=BEHAVIOR_PATTERNS[profile.device_usage_pattern],
        recommendations=build_recommendations(profile, low_engagement),
        type_performance=performance,
    )


class InsightsGenerator:
    def __init__(self, history_store: HistoryStore, history_limit: int = 200):
        self.history_store = history_store
        self.history_limit = history_limit

    async def generate(
        self,
        user_id: str,
        profile: UserBehaviorData,
        personalization: NotificationPersonalization,
    ) -> PersonalizationInsights:
        records = await self.history_store.fetch_recent(user_id, self.history_limit)
        return build_insights(user_id, records, profile, personalization)
