"""FieldKind constants for form spec fields.

Provides a simple constants container instead of an Enum so spec documents
can carry kinds this service does not know about (display-only controls).
"""

from __future__ import annotations


class FieldKind:
    TEXT = "text"
    PASSWORD = "password"
    DROPDOWN = "dropdown"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    TABLE = "table"
    CALCULATED = "calculated"


# Kinds that map to a column on the main table
SCALAR_KINDS: frozenset[str] = frozenset(
    {
        FieldKind.TEXT,
        FieldKind.PASSWORD,
        FieldKind.DROPDOWN,
        FieldKind.RADIO,
        FieldKind.CHECKBOX,
    }
)


__all__ = ["FieldKind", "SCALAR_KINDS"]
