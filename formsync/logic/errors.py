"""Error taxonomy for the synchronization engine.

Route handlers translate these into problem+json responses through
`formsync.http.error_mapping`; logic modules raise them directly.
"""

from __future__ import annotations


class FormSyncError(Exception):
    """Base class for engine failures."""


class ConfigurationError(FormSyncError):
    """No database is configured for this deployment."""


class SpecNotFound(FormSyncError):
    def __init__(self, form_name: str) -> None:
        super().__init__(f"no form spec found for {form_name!r}")
        self.form_name = form_name


class StorageUnavailable(FormSyncError):
    """Connectivity or query failure against the relational store."""


class InvalidSubmission(FormSyncError, ValueError):
    """Payload is unusable (missing session id, malformed metadata)."""


class SchemaMismatch(FormSyncError, ValueError):
    """Submission payload disagrees with the declared tables, or the form
    declares names that cannot be stored."""

    def __init__(self, message: str, *, field: str | None = None, candidates: list[str] | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.candidates = list(candidates or [])


__all__ = [
    "FormSyncError",
    "ConfigurationError",
    "SpecNotFound",
    "StorageUnavailable",
    "InvalidSubmission",
    "SchemaMismatch",
]
