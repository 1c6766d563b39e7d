"""Store factories bound to the configured data directory."""

from __future__ import annotations

from formsync.config import load_config
from formsync.logic.spec_store import SpecStore
from formsync.logic.submission_store import SubmissionStore


def get_spec_store() -> SpecStore:
    return SpecStore(load_config().storage.data_dir)


def get_submission_store() -> SubmissionStore:
    return SubmissionStore(load_config().storage.data_dir)


__all__ = ["get_spec_store", "get_submission_store"]
