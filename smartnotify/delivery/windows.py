"""Quiet-hour and active-hour helpers shared by timing and the delivery gate."""

from datetime import datetime, timedelta

from smartnotify.models import UserBehaviorData

DEFAULT_ACTIVE_HOUR = 9


def is_in_quiet_hours(now: datetime, profile: UserBehaviorData) -> bool:
    return profile.quiet_hours.contains(now.hour)


def at_hour(day: datetime, hour: int) -> datetime:
    """``day`` with the clock set to hour:00:00."""
    return day.replace(hour=hour, minute=0, second=0, microsecond=0)


def start_of_day(now: datetime) -> datetime:
    return at_hour(now, 0)


def later_active_hours(profile: UserBehaviorData, now: datetime) -> list[int]:
    """Active hours strictly after the current hour, ascending."""
    return sorted(hour for hour in profile.active_hours if hour > now.hour)


def first_active_hour(profile: UserBehaviorData) -> int:
    """Earliest active hour of the day, or 9 when the profile has none."""
    return min(profile.active_hours) if profile.active_hours else DEFAULT_ACTIVE_HOUR


def next_active_time(profile: UserBehaviorData, now: datetime) -> datetime:
    """
    Next instant the user is expected to be active.

    The earliest active hour later today, else tomorrow's earliest active hour.
    """
    remaining = later_active_hours(profile, now)
    if remaining:
        return at_hour(now, remaining[0])
    return at_hour(now + timedelta(days=1), first_active_hour(profile))


def minutes_until(target: datetime, now: datetime) -> int:
    """Whole minutes from ``now`` to ``target``, floored."""
    return int((target - now).total_seconds() // 60)
