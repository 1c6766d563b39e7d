"""Write one submission into its form's tables.

A synchronize call upserts the main row keyed by session id and fully
replaces the session's rows in every child table the payload carries. The
upsert and all child deletes/inserts share one transaction, so a failure
leaves the previous state intact and an identical retry converges to the
same result.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import MetaData, Table, delete, insert, inspect, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from formsync.db.base import get_engine
from formsync.logic.errors import (
    ConfigurationError,
    InvalidSubmission,
    SchemaMismatch,
    SpecNotFound,
    StorageUnavailable,
)
from formsync.logic.events import SUBMISSION_SYNCED, publish
from formsync.logic.schema_mapper import check_identifier_lengths, schema_from_spec
from formsync.logic.schema_provisioner import build_tables, provision_spec
from formsync.logic.spec_store import SpecStore
from formsync.models.form_spec import FormSpec
from formsync.models.schema_shape import ChildTableShape, SchemaShape
from formsync.models.submission import META_KEY, read_meta

logger = logging.getLogger(__name__)

# Older front-ends prefixed table cell keys with this
LEGACY_COLUMN_PREFIX = "table_"


@dataclass
class SyncResult:
    form_name: str
    session_id: Optional[str]
    skipped: bool = False
    provisioned_now: bool = False
    main_columns_written: List[str] = field(default_factory=list)
    child_rows_written: Dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "form_name": self.form_name,
            "session_id": self.session_id,
            "skipped": self.skipped,
            "provisioned_now": self.provisioned_now,
            "main_columns_written": list(self.main_columns_written),
            "child_rows_written": dict(self.child_rows_written),
        }


def to_text(value: Any) -> Optional[str]:
    """Coerce a submitted value to its stored text form.

    - None    -> None (SQL NULL)
    - str     -> as-is
    - others  -> JSON text ("true", "10", "[\"a\", \"b\"]")
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _cell_value(row: Mapping[str, Any], column: str) -> Any:
    value = row.get(column)
    if value is None:
        value = row.get(f"{LEGACY_COLUMN_PREFIX}{column}")
    return value


def resolve_child_rows(data: Mapping[str, Any], shape: SchemaShape) -> Dict[str, Optional[List[Mapping[str, Any]]]]:
    """Match payload arrays to declared child tables by exact field name.

    Returns field name -> rows, or None when the payload leaves that table
    untouched. Raises SchemaMismatch when a declared table has no matching
    key while the payload carries arrays under undeclared keys, or when a
    matched value is not a list of objects.
    """
    declared = {child.name for child in shape.child_tables}
    scalar = set(shape.main_columns)
    stray = sorted(
        key for key, value in data.items()
        if key != META_KEY and isinstance(value, list) and key not in declared and key not in scalar
    )

    resolved: Dict[str, Optional[List[Mapping[str, Any]]]] = {}
    for child in shape.child_tables:
        rows = data.get(child.name)
        if rows is None:
            if stray:
                raise SchemaMismatch(
                    f"no rows for table field {child.name!r}; payload arrays {stray} do not match any table field",
                    field=child.name,
                    candidates=stray,
                )
            resolved[child.name] = None
            continue
        if not isinstance(rows, list):
            raise SchemaMismatch(f"table field {child.name!r} must be a list of rows", field=child.name)
        for index, row in enumerate(rows):
            if not isinstance(row, Mapping):
                raise SchemaMismatch(f"row {index} of table field {child.name!r} must be an object", field=child.name)
        resolved[child.name] = rows

    if stray:
        logger.info("sync_ignored_arrays keys=%s", stray)
    return resolved


def _reflect(conn: Connection, table_name: str) -> Optional[Table]:
    if not inspect(conn).has_table(table_name):
        return None
    return Table(table_name, MetaData(), autoload_with=conn)


def _reflect_or_create(conn: Connection, form_name: str, shape: SchemaShape) -> tuple[Table, Dict[str, Table]]:
    main = _reflect(conn, form_name)
    children = {child.name: _reflect(conn, child.table_name(form_name)) for child in shape.child_tables}
    if main is None or any(t is None for t in children.values()):
        # Flag said provisioned but tables are gone; DDL is idempotent
        logger.warning("sync_tables_missing form=%s; re-provisioning", form_name)
        metadata, _, _ = build_tables(form_name, shape)
        metadata.create_all(conn, checkfirst=True)
        main = _reflect(conn, form_name)
        children = {child.name: _reflect(conn, child.table_name(form_name)) for child in shape.child_tables}
    return main, children  # type: ignore[return-value]


def _upsert_main(conn: Connection, table: Table, values: Dict[str, Any]) -> None:
    dialect = conn.dialect.name
    changed = {k: v for k, v in values.items() if k != "session_id"}
    if dialect in ("postgresql", "sqlite"):
        insert_fn = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = insert_fn(table).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.session_id],
            set_={k: stmt.excluded[k] for k in changed},
        )
        conn.execute(stmt)
        return
    # Generic dialects: update, then insert when nothing matched
    result = conn.execute(update(table).where(table.c.session_id == values["session_id"]).values(changed))
    if not result.rowcount:
        conn.execute(insert(table).values(values))


def _replace_children(
    conn: Connection,
    table: Table,
    child: ChildTableShape,
    session_id: str,
    rows: Sequence[Mapping[str, Any]],
) -> int:
    conn.execute(delete(table).where(table.c.session_id == session_id))
    if not rows:
        return 0
    stored = [c for c in child.columns if c in table.c]
    missing = [c for c in child.columns if c not in table.c]
    if missing:
        logger.warning("sync_unmigrated_columns table=%s columns=%s", table.name, missing)
    params = []
    for index, row in enumerate(rows):
        item: Dict[str, Any] = {"session_id": session_id, "row_index": index}
        for column in stored:
            item[column] = to_text(_cell_value(row, column))
        params.append(item)
    conn.execute(insert(table), params)
    return len(params)


def synchronize(
    spec: Optional[FormSpec],
    data: Mapping[str, Any],
    *,
    form_name: Optional[str] = None,
    session_id: Optional[str] = None,
    submitted_at: Optional[datetime] = None,
    engine: Optional[Engine] = None,
    spec_store: Optional[SpecStore] = None,
) -> SyncResult:
    """Upsert one submission and replace its child rows.

    `session_id` and `submitted_at` default to the payload's `_meta` values;
    `submitted_at` falls back to now (UTC). Without a configured database the
    call is a logged no-op returning a skipped result.
    """
    if spec is None:
        raise SpecNotFound(form_name or "")
    form_name = spec.form_name

    try:
        meta = read_meta(data)
    except PydanticValidationError as exc:
        raise InvalidSubmission(f"invalid {META_KEY}: {exc}") from exc
    session_id = session_id or meta.session_id
    if not session_id:
        raise InvalidSubmission("sessionId is required")
    stamp = _as_utc(submitted_at or meta.submitted_at or datetime.now(timezone.utc))

    if engine is None:
        try:
            engine = get_engine()
        except ConfigurationError:
            logger.info("sync_skipped form=%s session=%s reason=no_database", form_name, session_id)
            return SyncResult(form_name=form_name, session_id=session_id, skipped=True)

    shape = schema_from_spec(spec)
    check_identifier_lengths(form_name, shape)
    child_rows = resolve_child_rows(data, shape)
    result = SyncResult(form_name=form_name, session_id=session_id)
    result.provisioned_now = provision_spec(engine, spec, spec_store)

    try:
        with engine.begin() as conn:
            main, children = _reflect_or_create(conn, form_name, shape)

            values: Dict[str, Any] = {"session_id": session_id, "submitted_at": stamp}
            for column in shape.main_columns:
                if column not in data:
                    continue
                if column not in main.c:
                    logger.warning("sync_unmigrated_columns table=%s columns=%s", form_name, [column])
                    continue
                values[column] = to_text(data[column])
                result.main_columns_written.append(column)
            _upsert_main(conn, main, values)

            for child in shape.child_tables:
                rows = child_rows.get(child.name)
                if rows is None:
                    continue
                written = _replace_children(conn, children[child.name], child, session_id, rows)
                result.child_rows_written[child.name] = written
    except SQLAlchemyError as exc:
        logger.error("sync_failed form=%s session=%s", form_name, session_id, exc_info=True)
        raise StorageUnavailable(f"failed to synchronize {form_name!r}/{session_id!r}: {exc}") from exc

    logger.info(
        "sync_completed form=%s session=%s columns=%d children=%s",
        form_name,
        session_id,
        len(result.main_columns_written),
        result.child_rows_written,
    )
    publish(SUBMISSION_SYNCED, {"form_name": form_name, "session_id": session_id})
    return result


__all__ = [
    "LEGACY_COLUMN_PREFIX",
    "SyncResult",
    "to_text",
    "resolve_child_rows",
    "synchronize",
]
