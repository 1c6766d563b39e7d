"""File-backed storage for form spec documents.

Specs live beside the saved submissions as `{form_name}_spec.json`. The only
write this service performs is flipping the `provisioned` flag, and writes
go through a temp file plus `os.replace` so readers never see a torn file.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from formsync.logic.errors import SpecNotFound
from formsync.models.form_spec import FormSpec

logger = logging.getLogger(__name__)

SPEC_SUFFIX = "_spec.json"


def resolve_spec_path(data_dir: str | os.PathLike[str], form_name: str) -> Path:
    return Path(data_dir) / f"{form_name}{SPEC_SUFFIX}"


def write_json_atomic(path: Path, content: dict) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(content, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp_path, path)


class SpecStore:
    def __init__(self, data_dir: str | os.PathLike[str]) -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, form_name: str) -> Path:
        return resolve_spec_path(self.data_dir, form_name)

    def exists(self, form_name: str) -> bool:
        return self.path_for(form_name).is_file()

    def load(self, form_name: str) -> FormSpec:
        """Read and validate the spec for `form_name`.

        Raises SpecNotFound when the document is missing. A document without
        `formName` takes the name it was looked up by.
        """
        path = self.path_for(form_name)
        if not path.is_file():
            raise SpecNotFound(form_name)
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"spec document {path} is not a JSON object")
        raw.setdefault("formName", form_name)
        try:
            return FormSpec.model_validate(raw)
        except PydanticValidationError:
            logger.error("spec_invalid path=%s", path, exc_info=True)
            raise

    def try_load(self, form_name: str) -> FormSpec | None:
        try:
            return self.load(form_name)
        except SpecNotFound:
            return None

    def save(self, spec: FormSpec) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        write_json_atomic(self.path_for(spec.form_name), spec.to_document())

    def set_provisioned(self, spec: FormSpec, value: bool = True) -> None:
        """Flip the cached provisioning flag and persist it."""
        spec.provisioned = value
        self.save(spec)
        logger.info("spec_provisioned_flag form=%s value=%s", spec.form_name, value)


__all__ = ["SPEC_SUFFIX", "SpecStore", "resolve_spec_path", "write_json_atomic"]
