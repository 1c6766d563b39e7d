"""Create the per-form tables described by a `SchemaShape`.

Tables are declared with SQLAlchemy Core so the same definitions compile for
PostgreSQL and SQLite. Creation is create-if-not-exists: existing tables are
never altered or dropped, so columns added to a spec after provisioning are
not migrated.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import Column, DateTime, ForeignKey, Integer, MetaData, Table, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from formsync.logic.errors import StorageUnavailable
from formsync.logic.schema_mapper import check_identifier_lengths, schema_from_spec
from formsync.logic.spec_store import SpecStore
from formsync.models.form_spec import FormSpec
from formsync.models.schema_shape import ChildTableShape, SchemaShape

logger = logging.getLogger(__name__)


def build_main_table(metadata: MetaData, form_name: str, columns: List[str]) -> Table:
    return Table(
        form_name,
        metadata,
        Column("session_id", Text, primary_key=True),
        Column("submitted_at", DateTime(timezone=True)),
        *[Column(name, Text) for name in columns],
    )


def build_child_table(metadata: MetaData, form_name: str, main: Table, child: ChildTableShape) -> Table:
    return Table(
        child.table_name(form_name),
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("session_id", Text, ForeignKey(main.c.session_id, ondelete="CASCADE")),
        Column("row_index", Integer),
        *[Column(name, Text) for name in child.columns],
    )


def build_tables(form_name: str, shape: SchemaShape) -> Tuple[MetaData, Table, List[Table]]:
    """Declare the main table and one child table per table field."""
    metadata = MetaData()
    main = build_main_table(metadata, form_name, shape.main_columns)
    children = [build_child_table(metadata, form_name, main, child) for child in shape.child_tables]
    return metadata, main, children


def ensure_schema(engine: Engine, form_name: str, shape: SchemaShape) -> List[str]:
    """Create any missing tables for `form_name`; return the names created.

    Runs in one transaction, main table first (FK order). Safe to call any
    number of times.
    """
    check_identifier_lengths(form_name, shape)
    metadata, main, children = build_tables(form_name, shape)
    wanted = [main.name] + [t.name for t in children]
    try:
        with engine.begin() as conn:
            existing = set(inspect(conn).get_table_names())
            metadata.create_all(conn, checkfirst=True)
    except SQLAlchemyError as exc:
        logger.error("provision_failed form=%s", form_name, exc_info=True)
        raise StorageUnavailable(f"failed to provision tables for {form_name!r}: {exc}") from exc

    created = [name for name in wanted if name not in existing]
    if created:
        logger.info("provision_created form=%s tables=%s", form_name, created)
    return created


def provision_spec(engine: Engine, spec: FormSpec, spec_store: Optional[SpecStore] = None) -> bool:
    """Ensure tables for `spec` exist unless it is already marked provisioned.

    Returns True when DDL was issued. The `provisioned` flag only saves the
    round trip; losing a write of it costs a repeat of idempotent DDL.
    """
    if spec.provisioned:
        return False
    ensure_schema(engine, spec.form_name, schema_from_spec(spec))
    if spec_store is None:
        spec.provisioned = True
        return True
    try:
        spec_store.set_provisioned(spec, True)
    except OSError:
        logger.warning("provision_flag_not_persisted form=%s", spec.form_name, exc_info=True)
    return True


__all__ = [
    "build_main_table",
    "build_child_table",
    "build_tables",
    "ensure_schema",
    "provision_spec",
]
