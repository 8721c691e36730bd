"""Clock and time-zone helpers shared by analysis and delivery."""

import logging
from datetime import datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def load_zone(name: str | None) -> ZoneInfo | None:
    """ZoneInfo for a configured zone name; None means host local time."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}; using host local time")
        return None


def system_clock(tz: ZoneInfo | None = None) -> Clock:
    def now() -> datetime:
        return datetime.now(tz) if tz else datetime.now()
    return now


def zone_name(tz: ZoneInfo | None) -> str:
    if tz is not None:
        return tz.key
    return str(datetime.now().astimezone().tzinfo)


def localize(value: datetime, tz: ZoneInfo | None = None) -> datetime:
    """
    Express an offset-aware timestamp in ``tz`` (host local when None).

    Naive timestamps are assumed to already be local and pass through.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(tz) if tz else value.astimezone()


def utc_isoformat(value: datetime) -> str:
    """ISO string in UTC for storage and range queries. Naive values are host local."""
    return value.astimezone(timezone.utc).isoformat()


def day_of_week(value: datetime) -> int:
    """Day index with 0 = Sunday."""
    return (value.weekday() + 1) % 7
