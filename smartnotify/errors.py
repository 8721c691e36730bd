"""Exception types raised by SmartNotify stores.

Stores raise these; the engine catches them at its public boundary,
reports them to the diagnostics sink and substitutes a default.
"""

import logging
from typing import Callable

logger = logging.getLogger(__name__)


class SmartNotifyError(Exception):
    """Base class for SmartNotify errors."""


class HistoryStoreError(SmartNotifyError):
    """The notification history store could not be read."""


class StorageError(SmartNotifyError):
    """The durable key-value cache could not be read or written."""


# Receives (operation, user_id, error) for every failure the engine absorbs.
DiagnosticsSink = Callable[[str, str, Exception], None]


def log_diagnostic(operation: str, user_id: str, error: Exception) -> None:
    """Default diagnostics sink: log and move on."""
    logger.warning(f"{operation} failed for user {user_id}: {error}")
