"""Central logging configuration for the application.

Applies a root stdout handler so all module loggers emit without per-module
setup. Keeps uvicorn loggers visible and avoids duplicate handlers on
reloads. `FORMSYNC_LOG_LEVEL` overrides the default INFO level.
"""
from __future__ import annotations
import logging
import os
from logging.config import dictConfig


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": level, "handlers": ["console"], "propagate": False},
            # SQL echo is controlled by FORMSYNC_DB_ECHO, not the root level
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    }


def configure_logging() -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers, return to prevent duplicate output
    (important under reloaders/watchers and pytest's capture).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    level = (os.environ.get("FORMSYNC_LOG_LEVEL") or "INFO").strip().upper()
    if level not in logging.getLevelNamesMapping():
        level = "INFO"
    dictConfig(_dict_config(level))
