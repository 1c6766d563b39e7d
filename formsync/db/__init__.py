"""Database bootstrap utilities for the form sync service.

This module exposes convenience imports for engine construction. Per-form
tables are created on demand by `formsync.logic.schema_provisioner`; there
is no static migrations directory.
"""

from formsync.db.base import database_configured, get_engine, reset_engine

__all__ = [
    "get_engine",
    "database_configured",
    "reset_engine",
]
