"""Functional test bootstrap.

Points the service at a file-backed SQLite database and a scratch data
directory under tmp/ before any formsync module reads configuration. Each
test starts from an empty database, an empty data directory and a fresh
engine.
"""

from __future__ import annotations

import os
import pathlib
import shutil

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_TMP = _ROOT / "tmp"
_DB_FILE = _TMP / "functional_tests.db"
_DATA_DIR = _TMP / "functional_data"
_TMP.mkdir(parents=True, exist_ok=True)

# Use a file-backed SQLite DB to ensure persistence across connections
os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
os.environ["FORMSYNC_DATA_DIR"] = str(_DATA_DIR)
os.environ.pop("FORMSYNC_SYNC_ENABLED", None)


def _wipe() -> None:
    from formsync.db.base import reset_engine

    reset_engine()
    if _DB_FILE.exists():
        _DB_FILE.unlink()
    if _DATA_DIR.exists():
        shutil.rmtree(_DATA_DIR)


@pytest.fixture(autouse=True)
def fresh_state():
    """Per-test isolation: empty DB file, empty data dir, no buffered events."""
    from formsync.logic.events import EVENT_BUFFER

    _wipe()
    EVENT_BUFFER.clear()
    yield
    _wipe()


@pytest.fixture
def data_dir() -> pathlib.Path:
    _DATA_DIR.mkdir(parents=True, exist_ok=True)
    return _DATA_DIR


@pytest.fixture
def engine():
    from formsync.db.base import get_engine

    return get_engine()


@pytest.fixture
def spec_store(data_dir):
    from formsync.logic.spec_store import SpecStore

    return SpecStore(data_dir)


@pytest.fixture
def no_database(monkeypatch):
    """Simulate a store-less deployment."""
    from formsync.db.base import reset_engine

    monkeypatch.delenv("TEST_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    reset_engine()
    yield
    reset_engine()


EMPLOYEE_INTAKE_DOC = {
    "formName": "employee_intake",
    "title": "Employee Intake",
    "sections": [
        {
            "heading": "Employee",
            "fields": [
                {"type": "text", "name": "full_name", "label": "Full name", "required": True},
                {"type": "dropdown", "name": "department", "options": ["Ops", "Eng"]},
                {"type": "checkbox", "name": "perks", "options": ["gym", "parking"]},
                {"type": "button", "name": "submit", "label": "Submit"},
            ],
        },
        {
            "heading": "Family",
            "fields": [
                {
                    "type": "table",
                    "name": "dependents",
                    "columns": [
                        {"name": "name", "type": "text"},
                        {"name": "age", "type": "text"},
                        {"type": "calculated"},
                    ],
                },
            ],
        },
    ],
    "provisioned": False,
}


@pytest.fixture
def employee_doc() -> dict:
    import copy

    return copy.deepcopy(EMPLOYEE_INTAKE_DOC)


@pytest.fixture
def employee_spec(employee_doc):
    from formsync.models.form_spec import FormSpec

    return FormSpec.model_validate(employee_doc)


@pytest.fixture
def saved_employee_spec(spec_store, employee_spec):
    spec_store.save(employee_spec)
    return spec_store.load("employee_intake")


def submission(session_id: str, **values) -> dict:
    """Build a payload with `_meta` the way the generated forms post it."""
    payload = {
        "_meta": {
            "formName": "employee_intake",
            "sessionId": session_id,
            "submittedAt": values.pop("submitted_at", "2026-01-05T10:00:00Z"),
        }
    }
    payload.update(values)
    return payload


@pytest.fixture
def make_submission():
    return submission
