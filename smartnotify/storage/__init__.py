"""Per-user profile cache and durable key-value persistence."""

from smartnotify.storage.kv_store import SQLiteKeyValueStore
from smartnotify.storage.profile_store import ProfileStore

__all__ = [
    "ProfileStore",
    "SQLiteKeyValueStore",
]
