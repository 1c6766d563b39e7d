"""Derive the relational shape of a form from its spec.

Pure functions only: no I/O, no logging. The provisioner, synchronizer,
reader and teardown all consume the same `SchemaShape`.
"""

from __future__ import annotations

from typing import List

from formsync.logic.errors import SchemaMismatch
from formsync.models.form_spec import FormField, FormSpec
from formsync.models.schema_shape import (
    CHILD_RESERVED_COLUMNS,
    MAIN_RESERVED_COLUMNS,
    MAX_IDENTIFIER_BYTES,
    ChildTableShape,
    SchemaShape,
)


def _child_columns(field: FormField) -> List[str]:
    # Unnamed columns cannot be stored and are dropped
    names: List[str] = []
    for column in field.columns or []:
        if not column.name or column.name in CHILD_RESERVED_COLUMNS:
            continue
        if column.name not in names:
            names.append(column.name)
    return names


def schema_from_spec(spec: FormSpec) -> SchemaShape:
    """Return main columns and child tables for `spec`, in declaration order.

    - scalar kinds (text, password, dropdown, radio, checkbox) with a name
      become main-table columns
    - a table field with at least one named column becomes a child table
    - everything else is display-only and ignored

    A repeated name keeps its first occurrence. Names that collide with the
    bookkeeping columns (session_id, submitted_at, id, row_index) are skipped.
    """
    main_columns: List[str] = []
    child_tables: List[ChildTableShape] = []
    seen_children: set[str] = set()

    for field in spec.iter_fields():
        if field.is_table:
            cols = _child_columns(field)
            if field.name and cols and field.name not in seen_children:
                seen_children.add(field.name)
                child_tables.append(ChildTableShape(name=field.name, columns=cols))
        elif field.is_scalar and field.name and field.name not in MAIN_RESERVED_COLUMNS and field.name not in main_columns:
            main_columns.append(field.name)

    return SchemaShape(main_columns=main_columns, child_tables=child_tables)


def _too_long(name: str) -> bool:
    return len(name.encode("utf-8")) > MAX_IDENTIFIER_BYTES


def check_identifier_lengths(form_name: str, shape: SchemaShape) -> None:
    """Raise SchemaMismatch when a derived table or column name is too long.

    Checked before any DDL: a name the database would truncate no longer
    matches on reflection, and every later sync would try to create it again.
    """
    if _too_long(form_name):
        raise SchemaMismatch(f"form name {form_name!r} exceeds {MAX_IDENTIFIER_BYTES} bytes")
    for column in shape.main_columns:
        if _too_long(column):
            raise SchemaMismatch(f"field name {column!r} exceeds {MAX_IDENTIFIER_BYTES} bytes", field=column)
    for child in shape.child_tables:
        table_name = child.table_name(form_name)
        if _too_long(table_name):
            raise SchemaMismatch(
                f"table {table_name!r} for field {child.name!r} exceeds {MAX_IDENTIFIER_BYTES} bytes",
                field=child.name,
            )
        for column in child.columns:
            if _too_long(column):
                raise SchemaMismatch(
                    f"column {column!r} of table field {child.name!r} exceeds {MAX_IDENTIFIER_BYTES} bytes",
                    field=child.name,
                )


__all__ = ["schema_from_spec", "check_identifier_lengths"]
