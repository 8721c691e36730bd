"""Per-user content personalization."""

from smartnotify.content.personalizer import ContentPersonalizer

__all__ = ["ContentPersonalizer"]
