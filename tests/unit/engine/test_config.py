"""Tests for smartnotify/config.py and the engine/history factories"""

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from smartnotify import PROJECT_ROOT
from smartnotify.config import SmartNotifyConfig, load_config, resolve_path
from smartnotify.engine import NotificationEngine
from smartnotify.history import RestHistoryStore, SQLiteHistoryStore, build_history_store


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "nope.yaml")
        assert config == SmartNotifyConfig()
        assert config.engine.history_limit == 500
        assert config.engine.jitter_minutes == 30
        assert config.history.backend == "sqlite"

    def test_reads_nested_section(self, tmp_path):
        path = tmp_path / "smartnotify.yaml"
        path.write_text(
            "smartnotify:\n"
            "  engine:\n"
            "    timezone: Europe/Berlin\n"
            "    jitter_minutes: 10\n"
            "  history:\n"
            "    backend: rest\n"
            "    rest:\n"
            "      base_url: https://example.test/rest/v1\n"
        )
        config = load_config(path)
        assert config.engine.timezone == "Europe/Berlin"
        assert config.engine.jitter_minutes == 10
        assert config.engine.insights_history_limit == 200
        assert config.history.backend == "rest"
        assert config.history.rest.base_url == "https://example.test/rest/v1"

    def test_invalid_values_fall_back(self, tmp_path):
        path = tmp_path / "smartnotify.yaml"
        path.write_text("smartnotify:\n  history:\n    backend: mongo\n")
        assert load_config(path) == SmartNotifyConfig()

    def test_malformed_yaml_falls_back(self, tmp_path):
        path = tmp_path / "smartnotify.yaml"
        path.write_text("smartnotify: [unclosed\n")
        assert load_config(path) == SmartNotifyConfig()

    def test_shipped_config_is_valid(self):
        config = load_config()
        assert config.storage.kv_db_path == "data/smartnotify.db"
        assert config.history.db_path == "data/history.db"


class TestResolvePath:
    def test_relative_anchored_at_project_root(self):
        assert resolve_path("data/x.db") == PROJECT_ROOT / "data" / "x.db"

    def test_absolute_kept(self, tmp_path):
        assert resolve_path(str(tmp_path / "x.db")) == tmp_path / "x.db"


class TestFactories:
    def test_sqlite_backend(self, tmp_path):
        config = SmartNotifyConfig.model_validate(
            {"history": {"backend": "sqlite", "db_path": str(tmp_path / "h.db")}}
        )
        store = build_history_store(config.history)
        assert isinstance(store, SQLiteHistoryStore)
        assert store.db_path == tmp_path / "h.db"

    def test_rest_backend(self):
        config = SmartNotifyConfig.model_validate(
            {"history": {"backend": "rest", "rest": {"base_url": "https://h.test/v1/", "api_key": "k"}}}
        )
        store = build_history_store(config.history)
        assert isinstance(store, RestHistoryStore)
        assert store.base_url == "https://h.test/v1"
        assert store.api_key == "k"

    def test_engine_from_config(self, tmp_path):
        config = SmartNotifyConfig.model_validate({
            "engine": {"timezone": "America/New_York", "history_limit": 50},
            "storage": {"kv_db_path": str(tmp_path / "kv.db")},
            "history": {"db_path": str(tmp_path / "h.db")},
        })
        engine = NotificationEngine.from_config(config)
        assert engine.tz.key == "America/New_York"
        assert engine.analyzer.history_limit == 50
        assert engine.profile_store.kv_store.db_path == tmp_path / "kv.db"
        assert engine.clock().tzinfo is engine.tz

    def test_unknown_timezone_uses_local_time(self, tmp_path):
        config = SmartNotifyConfig.model_validate({
            "engine": {"timezone": "Mars/Olympus_Mons"},
            "storage": {"kv_db_path": str(tmp_path / "kv.db")},
            "history": {"db_path": str(tmp_path / "h.db")},
        })
        engine = NotificationEngine.from_config(config)
        assert engine.tz is None
        assert engine.clock().tzinfo is None


@pytest.mark.asyncio
async def test_engine_over_sqlite_history(tmp_path, mock_user_id):
    """End to end on real SQLite stores."""
    config = SmartNotifyConfig.model_validate({
        "storage": {"kv_db_path": str(tmp_path / "kv.db")},
        "history": {"db_path": str(tmp_path / "h.db")},
    })
    engine = NotificationEngine.from_config(config)
    history = engine.history_store

    sent = datetime(2024, 3, 4, 7, 55)
    for day in range(2):
        result = await history.record_sent(mock_user_id, "reminder", sent_at=sent + timedelta(days=day))
        await history.mark_read(result["history_id"], sent + timedelta(days=day, minutes=5))

    profile = await engine.analyze_user_behavior(mock_user_id)
    assert profile.active_hours == [8]
    assert profile.avg_response_time == pytest.approx(5.0)
    assert Path(tmp_path / "kv.db").exists()
