"""Configuration utilities for the form sync service.

This module loads application configuration with the following rules:
- Primary source: `formsync_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce value constraints.

An absent database DSN is a valid configuration: the service then runs
store-less and synchronization becomes a no-op.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("formsync_config.json")
logger = logging.getLogger(__name__)

_TRUE_TOKENS = {"1", "true", "yes", "on"}


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _as_bool(text: Optional[str], default: bool) -> bool:
    if text is None:
        return default
    return str(text).strip().lower() in _TRUE_TOKENS


class DatabaseConfig(BaseModel):
    dsn: Optional[str] = None
    echo: bool = Field(default=False)

    @field_validator("dsn")
    @classmethod
    def blank_dsn_means_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not str(v).strip():
            return None
        return str(v).strip()

    @property
    def configured(self) -> bool:
        return self.dsn is not None


class StorageConfig(BaseModel):
    data_dir: Path = Field(default=Path("_data"))


class SyncConfig(BaseModel):
    enabled: bool = Field(default=True)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class AppConfig(BaseModel):
    database: DatabaseConfig
    storage: StorageConfig
    sync: SyncConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) formsync_config.json at project root
    4) Defaults (no database, `_data` directory, sync enabled)
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    # Database (TEST_DATABASE_URL wins so test runs never touch a real DSN)
    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
    )
    echo_text = _env("FORMSYNC_DB_ECHO") or _read_config_file("database.echo") or _base("database.echo")

    # Storage
    data_dir = _env("FORMSYNC_DATA_DIR") or _read_config_file("storage.data_dir") or _base("storage.data_dir", "_data")

    # Sync
    enabled_text = _env("FORMSYNC_SYNC_ENABLED") or _read_config_file("sync.enabled") or _base("sync.enabled")
    origins_text = _env("FORMSYNC_CORS_ORIGINS") or _read_config_file("sync.cors_origins")
    base_origins = (base.get("sync") or {}).get("cors_origins") if isinstance(base.get("sync"), dict) else None
    if origins_text:
        origins = [o.strip() for o in origins_text.split(",") if o.strip()]
    elif isinstance(base_origins, list):
        origins = [str(o) for o in base_origins]
    else:
        origins = ["*"]

    try:
        return AppConfig(
            database=DatabaseConfig(dsn=dsn, echo=_as_bool(echo_text, False)),
            storage=StorageConfig(data_dir=Path(str(data_dir))),
            sync=SyncConfig(enabled=_as_bool(enabled_text, True), cors_origins=origins),
        )
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "StorageConfig",
    "SyncConfig",
    "load_config",
]
