"""
Tool: Delivery Gate
Purpose: Decide whether a notification goes out now or waits

Checks (first match wins):
    1. High urgency: deep-sleep hours 1-5 suppress until 06:00, else send
    2. Quiet hours respected and in effect        -> suppress until next active time
    3. Inactive hour and low urgency              -> suppress 60 minutes
    4. Daily cap for the type reached             -> suppress 1440 minutes
    5. Otherwise                                  -> send

The gate fails open: any error while evaluating means send.
"""

import logging
from datetime import datetime

from smartnotify.delivery.windows import (
    is_in_quiet_hours,
    minutes_until,
    next_active_time,
    start_of_day,
)
from smartnotify.errors import DiagnosticsSink, HistoryStoreError, log_diagnostic
from smartnotify.history.base import HistoryStore
from smartnotify.models import (
    DeliveryDecision,
    NotificationPersonalization,
    Urgency,
    UserBehaviorData,
)

logger = logging.getLogger(__name__)

DEEP_SLEEP_HOURS = range(1, 6)
WAKE_HOUR = 6
INACTIVE_RETRY_MINUTES = 60
CAP_RETRY_MINUTES = 24 * 60


class DeliveryGate:
    """Binary send/suppress decision with a suggested retry delay."""

    def __init__(self, history_store: HistoryStore, on_error: DiagnosticsSink | None = None):
        self.history_store = history_store
        self.on_error = on_error or log_diagnostic

    async def sent_today(self, user_id: str, notification_type: str, now: datetime) -> int:
        """Today's sent count for the type; 0 when the store can't be read."""
        try:
            return await self.history_store.count_sent_since(
                user_id, notification_type, start_of_day(now)
            )
        except HistoryStoreError as e:
            self.on_error("count sent today", user_id, e)
            return 0

    async def decide(
        self,
        user_id: str,
        notification_type: str,
        urgency: Urgency,
        profile: UserBehaviorData,
        personalization: NotificationPersonalization,
        now: datetime,
    ) -> DeliveryDecision:
        urgency = Urgency(urgency)
        notification_type = getattr(notification_type, "value", notification_type)

        if urgency == Urgency.HIGH:
            if now.hour in DEEP_SLEEP_HOURS:
                return DeliveryDecision(
                    should_send=False,
                    reason="Even urgent notifications delayed during deep sleep hours",
                    suggested_delay=(WAKE_HOUR - now.hour) * 60,
                )
            return DeliveryDecision(should_send=True, reason="High urgency notification")

        if personalization.delivery_preferences.respect_quiet_hours and is_in_quiet_hours(now, profile):
            return DeliveryDecision(
                should_send=False,
                reason="User in quiet hours",
                suggested_delay=minutes_until(next_active_time(profile, now), now),
            )

        if now.hour not in profile.active_hours and urgency == Urgency.LOW:
            return DeliveryDecision(
                should_send=False,
                reason="User typically not active at this time",
                suggested_delay=INACTIVE_RETRY_MINUTES,
            )

        sent = await self.sent_today(user_id, notification_type, now)
        limit = personalization.frequency_limit(notification_type)
        if sent >= limit:
            logger.info(f"Daily cap reached for {user_id}/{notification_type}: {sent}/{limit}")
            return DeliveryDecision(
                should_send=False,
                reason="Daily frequency limit reached",
                suggested_delay=CAP_RETRY_MINUTES,
            )

        return DeliveryDecision(should_send=True, reason="Optimal time for notification")

    @staticmethod
    def fail_open() -> DeliveryDecision:
        return DeliveryDecision(should_send=True, reason="Default send due to error")
