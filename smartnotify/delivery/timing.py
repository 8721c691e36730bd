"""
Tool: Timing Recommender
Purpose: Pick the best delivery instant for a notification

Rules (first match wins):
    1. High urgency outside quiet hours      -> now (0.9)
    2. Quiet hours respected and active now  -> next active time (0.8)
    3. An active hour remains later today    -> that hour + jitter (0.8)
    4. Otherwise                             -> tomorrow's first active hour (0.6)

High urgency inside quiet hours falls through to rule 2; urgency does not
override quiet hours here.
"""

import random
from datetime import datetime, timedelta

from smartnotify.delivery.windows import (
    at_hour,
    first_active_hour,
    is_in_quiet_hours,
    later_active_hours,
    next_active_time,
)
from smartnotify.models import (
    NotificationPersonalization,
    OptimalTiming,
    Urgency,
    UserBehaviorData,
)

MAX_ALTERNATIVES = 3


class TimingRecommender:
    """
    Args:
        rng: Source of the storm-avoidance jitter
        jitter_minutes: Jitter is drawn from 0 .. jitter_minutes-1
        fallback_delay_minutes: Offset used by fallback()
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        jitter_minutes: int = 30,
        fallback_delay_minutes: int = 5,
    ):
        self.rng = rng or random.Random()
        self.jitter_minutes = jitter_minutes
        self.fallback_delay_minutes = fallback_delay_minutes

    def recommend(
        self,
        profile: UserBehaviorData,
        personalization: NotificationPersonalization,
        urgency: Urgency,
        now: datetime,
    ) -> OptimalTiming:
        urgency = Urgency(urgency)
        in_quiet_hours = is_in_quiet_hours(now, profile)

        if urgency == Urgency.HIGH and not in_quiet_hours:
            return OptimalTiming(
                recommended_time=now,
                confidence=0.9,
                reason="High urgency notification sent immediately",
            )

        if personalization.delivery_preferences.respect_quiet_hours and in_quiet_hours:
            return OptimalTiming(
                recommended_time=next_active_time(profile, now),
                confidence=0.8,
                reason="Delayed for quiet hours until user active hours",
                alternative_times=[now],
            )

        remaining = later_active_hours(profile, now)
        if remaining:
            offset = self.rng.randrange(self.jitter_minutes)
            recommended = at_hour(now, remaining[0]).replace(minute=offset)
            confidence = 0.8
            reason = f"Scheduled for your most active time ({remaining[0]}:{offset:02d})"
        else:
            recommended = at_hour(now + timedelta(days=1), first_active_hour(profile))
            confidence = 0.6
            reason = "Scheduled for tomorrow's active hours"

        return OptimalTiming(
            recommended_time=recommended,
            confidence=confidence,
            reason=reason,
            alternative_times=self.alternatives(profile, recommended),
        )

    def alternatives(self, profile: UserBehaviorData, recommended: datetime) -> list[datetime]:
        """Other active hours (rank order) on the recommended date."""
        hours = [hour for hour in profile.active_hours if hour != recommended.hour]
        return [recommended.replace(hour=hour) for hour in hours[:MAX_ALTERNATIVES]]

    def fallback(self, now: datetime) -> OptimalTiming:
        """Recommendation used when analysis fails."""
        return OptimalTiming(
            recommended_time=now + timedelta(minutes=self.fallback_delay_minutes),
            confidence=0.3,
            reason="Default timing due to analysis error",
        )
