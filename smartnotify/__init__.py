"""SmartNotify: Notification behavior analysis and delivery scheduling

Philosophy:
    Notifications should arrive when a person is likely to read them, and
    not at all when they are likely to be ignored. Everything the engine
    knows comes from observed interaction history, never from surveys.

Design Principles:
    1. Observe, don't ask: profiles are derived from read/click history
    2. Fail open on delivery: a broken analysis never blocks a send
    3. Fail closed on data: a broken fetch yields a conservative default
    4. Quiet hours first: non-urgent traffic waits for active hours
    5. Caps per type: one noisy category can't drown out the rest

Components:
    analysis/: Behavior profiling, tie-break ranking, engagement insights
    delivery/: Optimal timing and the send/suppress gate
    content/: Per-user content personalization
    history/: Read access to the notification history store
    storage/: Per-user profile cache and durable key-value persistence
    engine.py: NotificationEngine facade with the five async entry points

Databases:
    data/smartnotify.db: key-value cache (behavior, personalization, insights)
    data/history.db: notification_history (when the SQLite backend is used)

Configuration: args/smartnotify.yaml
"""

from pathlib import Path


__version__ = "0.3.0"

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = PROJECT_ROOT / "args" / "smartnotify.yaml"
DATA_PATH = PROJECT_ROOT / "data"
KV_DB_PATH = DATA_PATH / "smartnotify.db"
HISTORY_DB_PATH = DATA_PATH / "history.db"
