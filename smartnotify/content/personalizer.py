"""
Tool: Content Personalizer
Purpose: Rewrite notification title/body for a specific user

Adjustments, applied in order to a copy of the notification:
    1. short_messages: bodies over 100 chars cut to 97 + "..."
    2. use_emojis: per-type emoji in front of the title
    3. engagement below 0.3: attention emoji, high priority, default sound
    4. system_announcement / weekly_progress: time-of-day greeting on the body

The input notification is never modified.
"""

import dataclasses
from datetime import datetime

from smartnotify.models import (
    NotificationEvent,
    NotificationPersonalization,
    NotificationType,
    UserBehaviorData,
)

MAX_SHORT_BODY = 100
ATTENTION_EMOJI = "\U0001F514"  # bell
LOW_ENGAGEMENT_THRESHOLD = 0.3

TYPE_EMOJIS: dict[str, str] = {
    NotificationType.FRIEND_REQUEST.value: "\U0001F44B",
    NotificationType.FRIEND_ACCEPTED.value: "\U0001F389",
    NotificationType.FRIEND_POST.value: "\U0001F37D️",
    NotificationType.POST_LIKE.value: "❤️",
    NotificationType.POST_COMMENT.value: "\U0001F4AC",
    NotificationType.ACHIEVEMENT_UNLOCKED.value: "\U0001F3C6",
    NotificationType.CUISINE_MILESTONE.value: "⭐",
    NotificationType.WEEKLY_PROGRESS.value: "\U0001F4CA",
    NotificationType.NEW_CUISINE_AVAILABLE.value: "\U0001F30D",
    NotificationType.REMINDER.value: "⏰",
    NotificationType.SYSTEM_ANNOUNCEMENT.value: "\U0001F4E2",
}

GREETING_TYPES = {
    NotificationType.SYSTEM_ANNOUNCEMENT.value,
    NotificationType.WEEKLY_PROGRESS.value,
}


def greeting_for(now: datetime) -> str:
    if now.hour < 12:
        return "Good morning"
    if now.hour < 17:
        return "Good afternoon"
    return "Good evening"


def shorten(body: str) -> str:
    if len(body) > MAX_SHORT_BODY:
        return body[:MAX_SHORT_BODY - 3] + "..."
    return body


def type_emoji(notification_type: str) -> str:
    return TYPE_EMOJIS.get(notification_type, ATTENTION_EMOJI)


class ContentPersonalizer:
    def personalize(
        self,
        notification: NotificationEvent,
        profile: UserBehaviorData,
        personalization: NotificationPersonalization,
        now: datetime,
    ) -> NotificationEvent:
        notification_type = getattr(notification.type, "value", notification.type)
        title = notification.title
        body = notification.body or ""
        data = dict(notification.data or {})
        prefs = personalization.content_preferences

        if prefs.short_messages:
            body = shorten(body)

        if prefs.use_emojis:
            title = f"{type_emoji(notification_type)} {title}"

        if profile.engagement_rate < LOW_ENGAGEMENT_THRESHOLD:
            title = f"{ATTENTION_EMOJI} {title}"
            data["priority"] = "high"
            data["sound"] = "default"

        if notification_type in GREETING_TYPES:
            body = f"{greeting_for(now)}! {body}"

        return dataclasses.replace(notification, title=title, body=body, data=data)
