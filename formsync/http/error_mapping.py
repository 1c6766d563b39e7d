"""Central error mapping for engine exceptions.

Single source of truth for mapping `FormSyncError` subclasses to
problem+json codes and HTTP statuses. Route modules import from here
instead of hardcoding strings or numbers.
"""

from __future__ import annotations

from typing import Dict, Type

from formsync.logic.errors import (
    ConfigurationError,
    FormSyncError,
    InvalidSubmission,
    SchemaMismatch,
    SpecNotFound,
    StorageUnavailable,
)

ERROR_MAP: Dict[Type[FormSyncError], Dict[str, object]] = {
    ConfigurationError: {"code": "FORMSYNC_DATABASE_NOT_CONFIGURED", "status": 503, "title": "Database Not Configured"},
    SpecNotFound: {"code": "FORMSYNC_SPEC_NOT_FOUND", "status": 404, "title": "Form Spec Not Found"},
    StorageUnavailable: {"code": "FORMSYNC_STORAGE_UNAVAILABLE", "status": 503, "title": "Storage Unavailable"},
    SchemaMismatch: {"code": "FORMSYNC_SCHEMA_MISMATCH", "status": 422, "title": "Schema Mismatch"},
    InvalidSubmission: {"code": "FORMSYNC_INVALID_SUBMISSION", "status": 422, "title": "Invalid Submission"},
}

_FALLBACK = {"code": "FORMSYNC_ERROR", "status": 500, "title": "Internal Server Error"}


def lookup(exc: FormSyncError) -> Dict[str, object]:
    """Return the mapping entry for the most specific matching class."""
    for cls in type(exc).__mro__:
        entry = ERROR_MAP.get(cls)  # type: ignore[arg-type]
        if entry is not None:
            return entry
    return _FALLBACK


__all__ = ["ERROR_MAP", "lookup"]
