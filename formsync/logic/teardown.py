"""Best-effort removal of a form's tables.

Deletion requests always complete: a table that fails to drop is logged and
reported, never raised. Child tables go first because they reference the
main table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import MetaData, Table, text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from formsync.db.base import get_engine
from formsync.logic.errors import ConfigurationError
from formsync.logic.events import FORM_DROPPED, publish
from formsync.logic.schema_mapper import schema_from_spec
from formsync.logic.spec_store import SpecStore
from formsync.models.form_spec import FormSpec

logger = logging.getLogger(__name__)


@dataclass
class TableDropOutcome:
    table: str
    dropped: bool
    error: Optional[str] = None


@dataclass
class TeardownReport:
    form_name: str
    skipped: bool = False
    tables: List[TableDropOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        # Always true; per-table failures live in `tables`
        return True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "form_name": self.form_name,
            "skipped": self.skipped,
            "tables": [
                {"table": t.table, "dropped": t.dropped, "error": t.error} for t in self.tables
            ],
        }


def _drop_one(engine: Engine, table_name: str) -> TableDropOutcome:
    try:
        # Own transaction per table so one failure cannot abort the rest
        with engine.begin() as conn:
            if conn.dialect.name == "postgresql":
                # CASCADE also clears child tables a later spec no longer declares
                quoted = conn.dialect.identifier_preparer.quote(table_name)
                conn.execute(sql_text(f"DROP TABLE IF EXISTS {quoted} CASCADE"))
            else:
                Table(table_name, MetaData()).drop(conn, checkfirst=True)
        return TableDropOutcome(table=table_name, dropped=True)
    except SQLAlchemyError as exc:
        logger.warning("teardown_table_failed table=%s error=%s", table_name, exc)
        return TableDropOutcome(table=table_name, dropped=False, error=str(exc))


def drop_form(
    form_name: str,
    spec: Optional[FormSpec] = None,
    *,
    engine: Optional[Engine] = None,
    spec_store: Optional[SpecStore] = None,
) -> TeardownReport:
    """Drop child tables then the main table for `form_name`.

    Child table names come from `spec`, or from `spec_store` when no spec is
    given; with neither only the main table is dropped. When a spec store is
    available the spec's `provisioned` flag is cleared so the next submission
    provisions again.
    """
    report = TeardownReport(form_name=form_name)
    if engine is None:
        try:
            engine = get_engine()
        except ConfigurationError:
            logger.info("teardown_skipped form=%s reason=no_database", form_name)
            report.skipped = True
            return report

    if spec is None and spec_store is not None:
        try:
            spec = spec_store.try_load(form_name)
        except (OSError, ValueError):
            logger.warning("teardown_spec_unreadable form=%s", form_name, exc_info=True)
            spec = None

    child_names = schema_from_spec(spec).child_table_names(form_name) if spec is not None else []
    for table_name in [*child_names, form_name]:
        report.tables.append(_drop_one(engine, table_name))

    if spec is not None and spec_store is not None and spec.provisioned:
        try:
            spec_store.set_provisioned(spec, False)
        except OSError:
            logger.warning("teardown_flag_reset_failed form=%s", form_name, exc_info=True)

    logger.info(
        "teardown_completed form=%s dropped=%s failed=%s",
        form_name,
        [t.table for t in report.tables if t.dropped],
        [t.table for t in report.tables if not t.dropped],
    )
    publish(FORM_DROPPED, report.as_dict())
    return report


__all__ = ["TableDropOutcome", "TeardownReport", "drop_form"]
