"""Admin endpoints: form teardown and bulk seeding."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from formsync.db.base import get_engine
from formsync.http.identifiers import require_form_name
from formsync.logic.seeding import seed_from_files
from formsync.logic.stores import get_spec_store, get_submission_store
from formsync.logic.teardown import drop_form

router = APIRouter()
logger = logging.getLogger(__name__)


@router.delete("/db/forms/{form_name}", summary="Drop a form's tables (always completes)")
def delete_form_tables(form_name: str):
    form_name = require_form_name(form_name)
    report = drop_form(form_name, spec_store=get_spec_store())
    return report.as_dict()


@router.post("/db/seed", summary="Sync every saved submission file into the database")
def seed_database():
    # Fail fast with 503 when no database is configured
    engine = get_engine()
    report = seed_from_files(get_submission_store(), get_spec_store(), engine=engine)
    return {"ok": True, **report.as_dict()}


__all__ = ["router", "delete_form_tables", "seed_database"]
