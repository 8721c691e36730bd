"""Read interface the engine uses against the notification history store."""

from abc import ABC, abstractmethod
from datetime import datetime

from smartnotify.models import HistoryRecord


class HistoryStore(ABC):
    """
    Read-only view of notification history.

    Implementations raise HistoryStoreError on any backend failure.
    """

    @abstractmethod
    async def fetch_recent(self, user_id: str, limit: int) -> list[HistoryRecord]:
        """Up to ``limit`` rows for the user, newest ``sent_at`` first."""

    @abstractmethod
    async def count_sent_since(
        self, user_id: str, notification_type: str, since: datetime
    ) -> int:
        """Rows of one type sent to the user at or after ``since``."""
