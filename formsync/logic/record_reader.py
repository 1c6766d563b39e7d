"""Read submissions back out of a form's tables.

Reads reflect the stored tables instead of rebuilding them from the spec, so
a column added to a spec after provisioning is simply absent from results.
A table that does not exist yet reads as empty rather than failing.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import MetaData, Table, inspect, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from formsync.logic.errors import StorageUnavailable
from formsync.logic.schema_mapper import schema_from_spec
from formsync.models.form_spec import FormSpec

logger = logging.getLogger(__name__)

# Bookkeeping columns left out of child rows returned to callers
_CHILD_HIDDEN = ("id", "session_id")


def _reflect(conn: Connection, table_name: str) -> Optional[Table]:
    if not inspect(conn).has_table(table_name):
        return None
    return Table(table_name, MetaData(), autoload_with=conn)


def list_records(engine: Engine, form_name: str) -> List[Dict[str, Any]]:
    """Return all main rows for `form_name`, newest submission first."""
    try:
        with engine.connect() as conn:
            table = _reflect(conn, form_name)
            if table is None:
                return []
            rows = conn.execute(
                select(table).order_by(table.c.submitted_at.desc(), table.c.session_id.asc())
            ).mappings().all()
    except SQLAlchemyError as exc:
        logger.error("list_records_failed form=%s", form_name, exc_info=True)
        raise StorageUnavailable(f"failed to list records for {form_name!r}: {exc}") from exc
    return [dict(r) for r in rows]


def _child_rows(conn: Connection, table_name: str, session_id: str) -> List[Dict[str, Any]]:
    table = _reflect(conn, table_name)
    if table is None:
        return []
    columns = [c for c in table.c if c.name not in _CHILD_HIDDEN]
    rows = conn.execute(
        select(*columns)
        .where(table.c.session_id == session_id)
        .order_by(table.c.row_index.asc(), table.c.id.asc())
    ).mappings().all()
    return [dict(r) for r in rows]


def get_record(engine: Engine, spec: FormSpec, session_id: str) -> Optional[Dict[str, Any]]:
    """Return the main row for `session_id` with its child rows attached.

    Child rows appear under their table field's name, ordered by row_index.
    Returns None when the form has no row for the session.
    """
    form_name = spec.form_name
    shape = schema_from_spec(spec)
    try:
        with engine.connect() as conn:
            table = _reflect(conn, form_name)
            if table is None:
                return None
            row = conn.execute(
                select(table).where(table.c.session_id == session_id)
            ).mappings().first()
            if row is None:
                return None
            record: Dict[str, Any] = dict(row)
            for child in shape.child_tables:
                record[child.name] = _child_rows(conn, child.table_name(form_name), session_id)
    except SQLAlchemyError as exc:
        logger.error("get_record_failed form=%s session=%s", form_name, session_id, exc_info=True)
        raise StorageUnavailable(f"failed to read {form_name!r}/{session_id!r}: {exc}") from exc
    return record


def list_form_tables(engine: Engine, form_name: str, spec: Optional[FormSpec] = None) -> List[str]:
    """Return the stored tables of `form_name`, main first, then children.

    Child tables come from `spec`; without one only the main table is
    considered. Tables that do not exist are left out.
    """
    wanted = [form_name]
    if spec is not None:
        wanted += schema_from_spec(spec).child_table_names(form_name)
    try:
        with engine.connect() as conn:
            names = set(inspect(conn).get_table_names())
    except SQLAlchemyError as exc:
        raise StorageUnavailable(f"failed to list tables: {exc}") from exc
    return [name for name in wanted if name in names]


def describe_table(engine: Engine, table_name: str) -> List[Dict[str, Any]]:
    """Return column name, type and nullability for a stored table."""
    try:
        with engine.connect() as conn:
            insp = inspect(conn)
            if not insp.has_table(table_name):
                return []
            columns = insp.get_columns(table_name)
    except SQLAlchemyError as exc:
        raise StorageUnavailable(f"failed to describe {table_name!r}: {exc}") from exc
    return [
        {"column_name": c["name"], "data_type": str(c["type"]), "is_nullable": bool(c.get("nullable", True))}
        for c in columns
    ]


__all__ = [
    "list_records",
    "get_record",
    "list_form_tables",
    "describe_table",
]
