"""Pydantic models for submission payloads.

`SaveRequest` is the body of the save endpoint. The `data` mapping holds the
reserved `_meta` object plus scalar and array values keyed by field name.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

META_KEY = "_meta"


class SubmissionMeta(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    form_name: Optional[str] = Field(default=None, alias="formName")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    submitted_at: Optional[datetime] = Field(default=None, alias="submittedAt")


class SaveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_name: Optional[str] = Field(default=None, alias="formName")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    data: Optional[Dict[str, Any]] = None


def read_meta(data: Dict[str, Any]) -> SubmissionMeta:
    """Parse the reserved `_meta` object of a payload, tolerating absence."""
    raw = data.get(META_KEY) if isinstance(data, dict) else None
    return SubmissionMeta.model_validate(raw if isinstance(raw, dict) else {})


__all__ = ["META_KEY", "SubmissionMeta", "SaveRequest", "read_meta"]
