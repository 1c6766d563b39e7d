"""Bulk-sync saved submission files into the database.

Used once when a database is attached to a deployment that already holds
file-only submissions. Files whose `_meta.formName` has no spec are
skipped; a failing file is reported and the run continues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine

from formsync.logic.errors import FormSyncError
from formsync.logic.record_synchronizer import synchronize
from formsync.logic.spec_store import SpecStore
from formsync.logic.submission_store import SubmissionStore
from formsync.models.submission import read_meta

logger = logging.getLogger(__name__)


@dataclass
class SeedReport:
    synced: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"synced": list(self.synced), "skipped": list(self.skipped), "failed": dict(self.failed)}


def seed_from_files(
    submissions: SubmissionStore,
    specs: SpecStore,
    *,
    engine: Optional[Engine] = None,
) -> SeedReport:
    report = SeedReport()
    for path, data in submissions.iter_submissions():
        try:
            form_name = read_meta(data).form_name
        except ValueError:
            form_name = None
        if not form_name or not specs.exists(form_name):
            report.skipped.append(path.name)
            continue
        try:
            spec = specs.load(form_name)
            result = synchronize(spec, data, engine=engine, spec_store=specs)
        except (FormSyncError, ValueError, OSError) as exc:
            logger.error("seed_file_failed path=%s error=%s", path, exc)
            report.failed[path.name] = str(exc)
            continue
        if result.skipped:
            report.skipped.append(path.name)
        else:
            report.synced.append(path.name)

    logger.info(
        "seed_completed synced=%d skipped=%d failed=%d",
        len(report.synced),
        len(report.skipped),
        len(report.failed),
    )
    return report


__all__ = ["SeedReport", "seed_from_files"]
