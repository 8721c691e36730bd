"""Read access to the notification history store."""

from smartnotify.config import HistoryConfig, resolve_path
from smartnotify.history.base import HistoryStore
from smartnotify.history.rest_store import RestHistoryStore
from smartnotify.history.sqlite_store import SQLiteHistoryStore


def build_history_store(config: HistoryConfig) -> HistoryStore:
    """Instantiate the backend named by ``history.backend``."""
    if config.backend == "rest":
        return RestHistoryStore(
            base_url=config.rest.base_url,
            api_key=config.rest.api_key,
            table=config.rest.table,
            timeout_seconds=config.rest.timeout_seconds,
        )
    return SQLiteHistoryStore(resolve_path(config.db_path))


__all__ = [
    "HistoryStore",
    "RestHistoryStore",
    "SQLiteHistoryStore",
    "build_history_store",
]
