"""SQLAlchemy engine management.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. No declarative models are defined here: per-form tables
are derived at runtime from form specs. This module only manages the shared
engine (and its connection pool).
"""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from formsync.config import load_config
from formsync.logic.errors import ConfigurationError

logger = logging.getLogger(__name__)


# Module-level cached Engine so all components share one pool
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def _db_url() -> str | None:
    return load_config().database.dsn


def _db_echo() -> bool:
    return load_config().database.echo


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    # SQLite ignores REFERENCES ... ON DELETE CASCADE unless asked per connection
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, _record):  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given (or configured) URL.

    Raises ConfigurationError when no URL is given and none is configured.
    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across sessions and threads during tests.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _db_url()
    if not resolved_url:
        raise ConfigurationError("no database configured (set DATABASE_URL)")

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        if _ENGINE is not None:
            _ENGINE.dispose()
        kwargs: dict = {"future": True, "pool_pre_ping": True, "echo": _db_echo()}
        if resolved_url.startswith("sqlite") and ":memory:" in resolved_url:
            kwargs.update({
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            })
        engine = create_engine(resolved_url, **kwargs)
        if engine.dialect.name == "sqlite":
            _enable_sqlite_foreign_keys(engine)
        logger.info("engine_created dialect=%s", engine.dialect.name)
        _ENGINE = engine
        _ENGINE_URL = resolved_url

    return _ENGINE


def database_configured() -> bool:
    return bool(_db_url())


def reset_engine() -> None:
    """Dispose the cached engine; the next get_engine() builds a fresh one."""
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None
