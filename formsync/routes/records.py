"""Read-only endpoints over synced records."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from formsync.db.base import get_engine
from formsync.http.identifiers import require_form_name, require_session_id
from formsync.logic.record_reader import describe_table, get_record, list_form_tables, list_records
from formsync.logic.stores import get_spec_store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/db/records/{form_name}", summary="List a form's records, newest first")
def get_records(form_name: str):
    form_name = require_form_name(form_name)
    records = list_records(get_engine(), form_name)
    return {"ok": True, "form_name": form_name, "records": records}


@router.get("/db/record/{form_name}/{session_id}", summary="Get one record with its table rows")
def get_single_record(form_name: str, session_id: str):
    form_name = require_form_name(form_name)
    session_id = require_session_id(session_id)
    spec = get_spec_store().load(form_name)
    record = get_record(get_engine(), spec, session_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"no record {session_id!r} for form {form_name!r}")
    return {"ok": True, "form_name": form_name, "record": record}


@router.get("/db/tables/{form_name}", summary="Describe the tables stored for a form")
def get_form_tables(form_name: str):
    form_name = require_form_name(form_name)
    engine = get_engine()
    spec = get_spec_store().try_load(form_name)
    tables = {name: describe_table(engine, name) for name in list_form_tables(engine, form_name, spec)}
    return {"ok": True, "form_name": form_name, "tables": tables}


__all__ = ["router", "get_records", "get_single_record", "get_form_tables"]
