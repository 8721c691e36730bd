"""
Tool: Logging Setup
Purpose: structlog output for the CLI and for apps embedding the engine

Engine modules log through plain ``logging.getLogger(__name__)``; their
records go through the same structlog renderer, so a user or command bound
with bind_user() shows up on every line, including the diagnostics sink's
warnings about absorbed failures.

Environment:
    SMARTNOTIFY_LOG_LEVEL   DEBUG, INFO, WARNING, ... (default INFO)
    SMARTNOTIFY_LOG_FORMAT  "json" for one JSON object per line

Usage:
    from smartnotify.logging_config import setup_logging, user_context

    setup_logging()
    with user_context("alice", command="analyze"):
        await engine.analyze_user_behavior("alice")
"""

from __future__ import annotations

import contextlib
import logging
import os
import sys
from typing import Iterator

import structlog

# The REST history store logs every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Route structlog and stdlib records to stderr through one renderer."""
    if level is None:
        level = os.environ.get("SMARTNOTIFY_LOG_LEVEL", "INFO")
    if json_output is None:
        json_output = os.environ.get("SMARTNOTIFY_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_user(user_id: str, **context) -> None:
    """
    Tag every following log line in this context with the user.

    Extra keywords (command, notification_type, ...) are bound alongside.
    """
    structlog.contextvars.bind_contextvars(user_id=user_id, **context)


@contextlib.contextmanager
def user_context(user_id: str, **context) -> Iterator[None]:
    """bind_user() for the duration of a block; earlier bindings come back after."""
    with structlog.contextvars.bound_contextvars(user_id=user_id, **context):
        yield


__all__ = ["bind_user", "get_logger", "setup_logging", "user_context"]
