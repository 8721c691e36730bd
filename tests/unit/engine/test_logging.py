"""Tests for smartnotify/logging_config.py"""

import logging

import pytest
import structlog

from smartnotify.errors import log_diagnostic
from smartnotify.logging_config import bind_user, setup_logging, user_context


@pytest.fixture(autouse=True)
def clean_context():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(logging.NOTSET)


def test_bind_user_with_extra_context(mock_user_id):
    bind_user(mock_user_id, notification_type="friend_post")
    assert structlog.contextvars.get_contextvars() == {
        "user_id": mock_user_id,
        "notification_type": "friend_post",
    }


def test_user_context_restores_previous_binding(mock_user_id):
    bind_user("outer_user")
    with user_context(mock_user_id, command="analyze"):
        assert structlog.contextvars.get_contextvars() == {
            "user_id": mock_user_id,
            "command": "analyze",
        }
    assert structlog.contextvars.get_contextvars() == {"user_id": "outer_user"}


def test_stdlib_records_carry_bound_user(mock_user_id, capsys):
    setup_logging(level="WARNING", json_output=True)
    with user_context(mock_user_id):
        log_diagnostic("analyze behavior", mock_user_id, RuntimeError("db locked"))

    err = capsys.readouterr().err
    assert f'"user_id": "{mock_user_id}"' in err
    assert "analyze behavior failed" in err


def test_quiets_http_client_logs():
    setup_logging(level="DEBUG")
    assert logging.getLogger("httpx").level == logging.WARNING
