"""
Tool: SmartNotify Models
Purpose: Data structures for behavior profiles, personalization and delivery decisions

Usage:
    from smartnotify.models import (
        NotificationEvent,
        HistoryRecord,
        UserBehaviorData,
        NotificationPersonalization,
        OptimalTiming,
        DeliveryDecision,
        PersonalizationInsights,
    )
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


QUIET_WINDOW_HOURS = 8
MAX_ACTIVE_HOURS = 8
MAX_PREFERRED_DAYS = 4


class NotificationType(str, Enum):
    """Notification types emitted by the app."""

    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    FRIEND_POST = "friend_post"
    POST_LIKE = "post_like"
    POST_COMMENT = "post_comment"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    CUISINE_MILESTONE = "cuisine_milestone"
    WEEKLY_PROGRESS = "weekly_progress"
    NEW_CUISINE_AVAILABLE = "new_cuisine_available"
    REMINDER = "reminder"
    SYSTEM_ANNOUNCEMENT = "system_announcement"


class Urgency(str, Enum):
    """Caller-supplied priority tier."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class UsagePattern(str, Enum):
    """Part of the day in which a user reads most notifications."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"
    MIXED = "mixed"


class FrequencyPreference(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Daily cap per type when the user has no custom_frequency entry
DEFAULT_FREQUENCY_LIMITS: dict[str, int] = {
    NotificationType.FRIEND_REQUEST.value: 10,
    NotificationType.FRIEND_ACCEPTED.value: 10,
    NotificationType.FRIEND_POST.value: 20,
    NotificationType.POST_LIKE.value: 15,
    NotificationType.POST_COMMENT.value: 15,
    NotificationType.ACHIEVEMENT_UNLOCKED.value: 5,
    NotificationType.CUISINE_MILESTONE.value: 3,
    NotificationType.WEEKLY_PROGRESS.value: 1,
    NotificationType.NEW_CUISINE_AVAILABLE.value: 2,
    NotificationType.REMINDER.value: 5,
    NotificationType.SYSTEM_ANNOUNCEMENT.value: 2,
}
FALLBACK_FREQUENCY_LIMIT = 5


def clamp_unit(value: float) -> float:
    """Clamp a rate or confidence into [0, 1]."""
    return max(0.0, min(1.0, float(value)))


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed). Empty values give None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


@dataclass
class NotificationEvent:
    """
    A notification as handed to the engine for personalization.

    ``type`` is kept as a plain string so unknown types pass through.
    """

    id: str
    type: str
    user_id: str
    title: str
    body: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    scheduled_for: datetime | None = None
    sent_at: datetime | None = None
    read_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": _enum_value(self.type),
            "user_id": self.user_id,
            "title": self.title,
            "body": self.body,
            "data": dict(self.data),
            "scheduled_for": _iso(self.scheduled_for),
            "sent_at": _iso(self.sent_at),
            "read_at": _iso(self.read_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationEvent":
        data = data.copy()
        if data.get("data") is None:
            data["data"] = {}
        for field_name in ["scheduled_for", "sent_at", "read_at"]:
            data[field_name] = parse_timestamp(data.get(field_name))
        return cls(**data)

    @staticmethod
    def generate_id() -> str:
        return f"notif_{uuid.uuid4().hex[:12]}"


@dataclass
class HistoryRecord:
    """One row of the notification history store."""

    type: str
    sent_at: datetime | None = None
    read_at: datetime | None = None
    clicked_at: datetime | None = None
    action_taken: str | None = None
    id: str | None = None
    user_id: str | None = None

    @property
    def engaged(self) -> bool:
        """Clicked or acted upon."""
        return bool(self.clicked_at or self.action_taken)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "HistoryRecord":
        """Build from a store row; unknown columns are ignored."""
        action = row.get("action_taken")
        if isinstance(action, bool):
            action = "true" if action else None
        return cls(
            type=row.get("type") or "",
            sent_at=parse_timestamp(row.get("sent_at")),
            read_at=parse_timestamp(row.get("read_at")),
            clicked_at=parse_timestamp(row.get("clicked_at")),
            action_taken=action or None,
            id=row.get("id"),
            user_id=row.get("user_id"),
        )


@dataclass
class QuietHours:
    """Circular hour window [start, end) of minimal engagement."""

    start: int
    end: int

    @classmethod
    def starting_at(cls, start: int) -> "QuietHours":
        start = start % 24
        return cls(start=start, end=(start + QUIET_WINDOW_HOURS) % 24)

    def contains(self, hour: int) -> bool:
        """Whether ``hour`` falls inside the window (end exclusive)."""
        if self.start <= self.end:
            return self.start <= hour < self.end
        # Window spans midnight
        return hour >= self.start or hour < self.end

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuietHours":
        return cls(start=int(data["start"]), end=int(data["end"]))


@dataclass
class UserBehaviorData:
    """
    Behavior profile derived from a user's notification history.

    Recomputed wholesale by analysis; never partially mutated.
    """

    active_hours: list[int]
    preferred_days: list[int]  # 0 = Sunday
    avg_response_time: float  # minutes
    engagement_rate: float
    quiet_hours: QuietHours
    device_usage_pattern: UsagePattern
    notification_frequency_preference: FrequencyPreference
    last_active_time: datetime
    time_zone: str

    def __post_init__(self):
        self.engagement_rate = clamp_unit(self.engagement_rate)

    @classmethod
    def default(cls, time_zone: str, now: datetime) -> "UserBehaviorData":
        """Conservative profile used when there is no usable history."""
        return cls(
            active_hours=[9, 12, 15, 18, 20],
            preferred_days=[1, 2, 3, 4, 5],
            avg_response_time=60,
            engagement_rate=0.5,
            quiet_hours=QuietHours(start=22, end=6),
            device_usage_pattern=UsagePattern.MIXED,
            notification_frequency_preference=FrequencyPreference.MEDIUM,
            last_active_time=now,
            time_zone=time_zone,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "active_hours": list(self.active_hours),
            "preferred_days": list(self.preferred_days),
            "avg_response_time": self.avg_response_time,
            "engagement_rate": self.engagement_rate,
            "quiet_hours": self.quiet_hours.to_dict(),
            "device_usage_pattern": self.device_usage_pattern.value,
            "notification_frequency_preference": self.notification_frequency_preference.value,
            "last_active_time": _iso(self.last_active_time),
            "time_zone": self.time_zone,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserBehaviorData":
        data = data.copy()
        data["quiet_hours"] = QuietHours.from_dict(data["quiet_hours"])
        data["device_usage_pattern"] = UsagePattern(data["device_usage_pattern"])
        data["notification_frequency_preference"] = FrequencyPreference(
            data["notification_frequency_preference"]
        )
        data["last_active_time"] = parse_timestamp(data["last_active_time"])
        return cls(**data)


@dataclass
class ContentPreferences:
    show_images: bool = True
    show_previews: bool = True
    use_emojis: bool = True
    short_messages: bool = False


@dataclass
class DeliveryPreferences:
    batch_similar: bool = True
    delay_non_urgent: bool = True
    respect_quiet_hours: bool = True
    adapt_to_activity: bool = True


@dataclass
class NotificationPersonalization:
    """
    Per-user notification preferences.

    Seeded with defaults on first access; changed only through
    NotificationEngine.update_personalization().
    """

    user_id: str
    preferred_types: list[str] = field(
        default_factory=lambda: [
            NotificationType.FRIEND_REQUEST.value,
            NotificationType.FRIEND_POST.value,
            NotificationType.ACHIEVEMENT_UNLOCKED.value,
        ]
    )
    muted_types: list[str] = field(default_factory=list)
    custom_frequency: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_FREQUENCY_LIMITS)
    )
    content_preferences: ContentPreferences = field(default_factory=ContentPreferences)
    delivery_preferences: DeliveryPreferences = field(default_factory=DeliveryPreferences)

    def frequency_limit(self, notification_type: str) -> int:
        """Effective daily cap for a type."""
        notification_type = _enum_value(notification_type)
        if notification_type in self.custom_frequency:
            return self.custom_frequency[notification_type]
        return DEFAULT_FREQUENCY_LIMITS.get(notification_type, FALLBACK_FREQUENCY_LIMIT)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationPersonalization":
        data = data.copy()
        data["content_preferences"] = ContentPreferences(**(data.get("content_preferences") or {}))
        data["delivery_preferences"] = DeliveryPreferences(**(data.get("delivery_preferences") or {}))
        data["custom_frequency"] = {
            k: int(v) for k, v in (data.get("custom_frequency") or {}).items()
        }
        return cls(**data)


@dataclass
class OptimalTiming:
    """Recommended delivery instant for one notification."""

    recommended_time: datetime
    confidence: float
    reason: str
    alternative_times: list[datetime] = field(default_factory=list)

    def __post_init__(self):
        self.confidence = clamp_unit(self.confidence)

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommended_time": _iso(self.recommended_time),
            "confidence": self.confidence,
            "reason": self.reason,
            "alternative_times": [_iso(t) for t in self.alternative_times],
        }


@dataclass
class DeliveryDecision:
    """Send/suppress verdict with an optional retry delay in minutes."""

    should_send: bool
    reason: str
    suggested_delay: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PersonalizationInsights:
    """Aggregate engagement view for display."""

    user_id: str
    best_engagement_time: str
    preferred_notification_types: list[str]
    low_engagement_types: list[str]
    optimal_frequency: dict[str, int]
    behavior_pattern: str
    recommendations: list[str]
    type_performance: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PersonalizationInsights":
        return cls(**data)
