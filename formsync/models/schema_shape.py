"""Relational shape derived from a form spec."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

# Columns every provisioned table carries; spec fields may not reuse them
MAIN_RESERVED_COLUMNS: frozenset[str] = frozenset({"session_id", "submitted_at"})
CHILD_RESERVED_COLUMNS: frozenset[str] = frozenset({"id", "session_id", "row_index"})

# PostgreSQL truncates longer identifiers, so derived names must fit
MAX_IDENTIFIER_BYTES = 63


@dataclass(frozen=True)
class ChildTableShape:
    name: str
    columns: List[str] = field(default_factory=list)

    def table_name(self, form_name: str) -> str:
        return f"{form_name}_{self.name}"


@dataclass(frozen=True)
class SchemaShape:
    main_columns: List[str] = field(default_factory=list)
    child_tables: List[ChildTableShape] = field(default_factory=list)

    def child_table_names(self, form_name: str) -> List[str]:
        return [child.table_name(form_name) for child in self.child_tables]


__all__ = [
    "MAIN_RESERVED_COLUMNS",
    "CHILD_RESERVED_COLUMNS",
    "MAX_IDENTIFIER_BYTES",
    "ChildTableShape",
    "SchemaShape",
]
