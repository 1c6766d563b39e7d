"""Save and load endpoints for form submissions.

Saving always writes the submission file first; the database sync runs
afterwards when the form has a spec and sync is enabled. A failed sync
surfaces as a problem+json error while the file stays saved, so a later
seed run or resubmission can converge the database.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from formsync.config import load_config
from formsync.http.identifiers import require_form_name, require_session_id
from formsync.logic.errors import InvalidSubmission
from formsync.logic.record_synchronizer import synchronize
from formsync.logic.stores import get_spec_store, get_submission_store
from formsync.logic.submission_store import new_session_id
from formsync.models.submission import META_KEY, SaveRequest, read_meta

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/save", summary="Save a form submission and sync it to the database")
def save_submission(payload: SaveRequest):
    if payload.data is None:
        raise HTTPException(status_code=400, detail="No data provided")
    data = payload.data
    try:
        parsed = read_meta(data)
    except ValueError as exc:
        raise InvalidSubmission(f"invalid _meta: {exc}") from exc

    form_name = payload.form_name or parsed.form_name
    session_id = payload.session_id or parsed.session_id
    if form_name:
        form_name = require_form_name(form_name)
    if session_id:
        session_id = require_session_id(session_id)

    session_id = session_id or new_session_id()
    # Keep resolved identifiers in the file so a later seed run can sync it
    meta = data.get(META_KEY) if isinstance(data.get(META_KEY), dict) else {}
    stamped = {**meta, "sessionId": session_id}
    if form_name:
        stamped["formName"] = form_name
    data = {**data, META_KEY: stamped}

    submissions = get_submission_store()
    file_name, session_id = submissions.save(form_name, session_id, data)

    sync = None
    specs = get_spec_store()
    if form_name and specs.exists(form_name) and load_config().sync.enabled:
        spec = specs.load(form_name)
        sync = synchronize(spec, data, session_id=session_id, spec_store=specs).as_dict()
    elif form_name:
        logger.info("save_without_sync form=%s session=%s", form_name, session_id)

    return {"ok": True, "file": file_name, "session_id": session_id, "sync": sync}


@router.get("/load", summary="Load a saved submission file")
def load_submission(
    form_name: str | None = Query(None, alias="formName"),
    session_id: str | None = Query(None, alias="id"),
):
    if not form_name or not session_id:
        raise HTTPException(status_code=400, detail="formName and id required")
    data = get_submission_store().load(require_form_name(form_name), require_session_id(session_id))
    if data is None:
        raise HTTPException(status_code=404, detail="Not found")
    return {"ok": True, "data": data}


__all__ = ["router", "save_submission", "load_submission"]
