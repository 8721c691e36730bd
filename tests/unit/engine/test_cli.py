"""Tests for smartnotify/cli.py"""

import json
from datetime import datetime
from unittest.mock import patch

import pytest

from smartnotify import cli
from smartnotify.config import SmartNotifyConfig
from smartnotify.engine import NotificationEngine


@pytest.fixture
def engine(tmp_path):
    config = SmartNotifyConfig.model_validate({
        "storage": {"kv_db_path": str(tmp_path / "kv.db")},
        "history": {"db_path": str(tmp_path / "h.db")},
    })
    engine = NotificationEngine.from_config(config)
    engine.clock = lambda: datetime(2024, 3, 6, 12, 0)
    return engine


@pytest.fixture
def run_cli(engine, capsys):
    def run(*argv):
        with patch.object(cli.NotificationEngine, "from_config", return_value=engine):
            code = cli.main(["--log-level", "WARNING", *argv])
        out = capsys.readouterr().out
        return code, (json.loads(out) if out.strip() else None)

    return run


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()


def test_rejects_unknown_urgency():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["timing", "-u", "alice", "-t", "reminder", "--urgency", "urgent"])


def test_should_send(run_cli):
    code, payload = run_cli("should-send", "-u", "alice", "-t", "friend_post", "--urgency", "high")
    assert code == 0
    assert payload["should_send"] is True


def test_personalize(run_cli):
    code, payload = run_cli(
        "personalize", "-u", "alice", "-t", "system_announcement", "--title", "News", "--body", "v2"
    )
    assert code == 0
    assert payload["body"] == "Good afternoon! v2"
    assert payload["id"].startswith("notif_")


def test_prefs_update_and_show(run_cli):
    code, payload = run_cli("prefs", "-u", "alice", "--set", 'muted_types=["post_like"]')
    assert code == 0
    assert payload["success"] is True

    code, payload = run_cli("prefs", "-u", "alice")
    assert payload["muted_types"] == ["post_like"]


def test_prefs_bad_json(run_cli, capsys):
    code, _ = run_cli("prefs", "-u", "alice", "--set", "muted_types=[oops")
    assert code == 1


def test_record_then_analyze(run_cli):
    code, payload = run_cli("record", "-u", "alice", "-t", "reminder", "--read", "--clicked")
    assert code == 0
    assert payload["success"] is True

    code, profile = run_cli("analyze", "-u", "alice")
    assert code == 0
    assert profile["engagement_rate"] == 1.0
    assert len(profile["active_hours"]) == 1


def test_prefs_rejects_user_id_field(run_cli):
    code, payload = run_cli("prefs", "-u", "alice", "--set", 'user_id="mallory"')
    assert code == 1
    assert payload["success"] is False
    assert "user_id" in payload["error"]
