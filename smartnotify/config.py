from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from smartnotify import CONFIG_PATH, HISTORY_DB_PATH, KV_DB_PATH, PROJECT_ROOT

logger = logging.getLogger(__name__)


# =============================================================================
# SmartNotifyConfig (args/smartnotify.yaml)
# =============================================================================

class EngineConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    timezone: Optional[str] = None
    history_limit: int = Field(default=500, ge=1)
    insights_history_limit: int = Field(default=200, ge=1)
    jitter_minutes: int = Field(default=30, ge=1, le=60)
    fallback_delay_minutes: int = Field(default=5, ge=0)


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    kv_db_path: str = Field(default=str(KV_DB_PATH))


class RestHistoryConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    base_url: str = Field(default="http://localhost:54321/rest/v1")
    api_key: Optional[str] = None
    table: str = Field(default="notification_history")
    timeout_seconds: float = Field(default=10.0, gt=0)


class HistoryConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    backend: Literal["sqlite", "rest"] = Field(default="sqlite")
    db_path: str = Field(default=str(HISTORY_DB_PATH))
    rest: RestHistoryConfig = Field(default_factory=RestHistoryConfig)


class SmartNotifyConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    engine: EngineConfig = Field(default_factory=EngineConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)


def resolve_path(value: str) -> Path:
    """Resolve a configured path; relative paths are anchored at the project root."""
    path = Path(value).expanduser()
    return path if path.is_absolute() else PROJECT_ROOT / path


def load_config(path: Path | None = None) -> SmartNotifyConfig:
    """Load and validate args/smartnotify.yaml, falling back to defaults."""
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        return SmartNotifyConfig()

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not read {config_path}: {e}; using defaults")
        return SmartNotifyConfig()

    try:
        return SmartNotifyConfig.model_validate(raw.get("smartnotify", raw))
    except ValidationError as e:
        logger.warning(f"Invalid config in {config_path}: {e}; using defaults")
        return SmartNotifyConfig()
