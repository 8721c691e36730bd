"""
Tool: REST History Store
Purpose: Read notification history from a PostgREST-style HTTP API

Usage:
    from smartnotify.history.rest_store import RestHistoryStore

    store = RestHistoryStore(
        base_url="https://project.example.co/rest/v1",
        api_key=os.environ["HISTORY_API_KEY"],
    )
    rows = await store.fetch_recent("alice", limit=500)

Dependencies:
    - httpx
"""

from datetime import datetime

import httpx

from smartnotify.errors import HistoryStoreError
from smartnotify.history.base import HistoryStore
from smartnotify.models import HistoryRecord
from smartnotify.timeutils import utc_isoformat

HISTORY_COLUMNS = "id,user_id,type,sent_at,read_at,clicked_at,action_taken"


class RestHistoryStore(HistoryStore):
    """
    History reads over HTTP.

    Args:
        base_url: API root, e.g. ``https://host/rest/v1``
        api_key: Sent as ``apikey`` and bearer token when set
        table: Table/resource name
        timeout_seconds: Per-request timeout
        client: Pre-built AsyncClient (tests pass one with a MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        table: str = "notification_history",
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.table = table
        self.timeout_seconds = timeout_seconds
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _get(self, params: dict[str, str]) -> list[dict]:
        url = f"{self.base_url}/{self.table}"
        try:
            if self._client is not None:
                resp = await self._client.get(url, params=params, headers=self._headers())
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    resp = await client.get(url, params=params, headers=self._headers())
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise HistoryStoreError(f"GET {url} failed: {e}") from e

        if not isinstance(payload, list):
            raise HistoryStoreError(f"GET {url} returned {type(payload).__name__}, expected list")
        return payload

    async def fetch_recent(self, user_id: str, limit: int) -> list[HistoryRecord]:
        rows = await self._get({
            "select": HISTORY_COLUMNS,
            "user_id": f"eq.{user_id}",
            "order": "sent_at.desc",
            "limit": str(limit),
        })
        try:
            return [HistoryRecord.from_row(row) for row in rows]
        except (TypeError, ValueError, AttributeError) as e:
            raise HistoryStoreError(f"Malformed history row: {e}") from e

    async def count_sent_since(
        self, user_id: str, notification_type: str, since: datetime
    ) -> int:
        rows = await self._get({
            "select": "id",
            "user_id": f"eq.{user_id}",
            "type": f"eq.{notification_type}",
            "sent_at": f"gte.{utc_isoformat(since)}",
        })
        return len(rows)
