"""File-backed storage for raw submissions.

Every save writes the payload's `data` object to
`{data_dir}/{form_name}_{session_id}.json` before any database sync, so the
files double as the seed source when a database is attached later.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from formsync.logic.spec_store import SPEC_SUFFIX, write_json_atomic

logger = logging.getLogger(__name__)

DEFAULT_FORM_NAME = "form"


def new_session_id() -> str:
    """Short random session id (first group of a UUID4)."""
    return str(uuid.uuid4()).split("-")[0]


class SubmissionStore:
    def __init__(self, data_dir: str | os.PathLike[str]) -> None:
        self.data_dir = Path(data_dir)

    def file_name(self, form_name: str, session_id: str) -> str:
        return f"{form_name}_{session_id}.json"

    def save(self, form_name: Optional[str], session_id: Optional[str], data: Dict[str, Any]) -> Tuple[str, str]:
        """Write `data` and return (file name, session id used)."""
        form = form_name or DEFAULT_FORM_NAME
        sid = session_id or new_session_id()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        name = self.file_name(form, sid)
        write_json_atomic(self.data_dir / name, data)
        logger.info("submission_saved path=%s", self.data_dir / name)
        return name, sid

    def load(self, form_name: str, session_id: str) -> Optional[Dict[str, Any]]:
        path = self.data_dir / self.file_name(form_name, session_id)
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def iter_submissions(self) -> Iterator[Tuple[Path, Dict[str, Any]]]:
        """Yield (path, data) for every saved submission, skipping spec files.

        Unreadable files are logged and skipped.
        """
        if not self.data_dir.is_dir():
            return
        for path in sorted(self.data_dir.glob("*.json")):
            if path.name.endswith(SPEC_SUFFIX):
                continue
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError):
                logger.warning("submission_unreadable path=%s", path, exc_info=True)
                continue
            if isinstance(data, dict):
                yield path, data


__all__ = ["DEFAULT_FORM_NAME", "SubmissionStore", "new_session_id"]
