"""Identifier checks applied at the request boundary.

Form names become table names and session ids become file names, so both
are restricted before they reach the engine, which quotes but does not
re-validate them.
"""

from __future__ import annotations

import re
from typing import Optional

from fastapi import HTTPException

# 63 is PostgreSQL's identifier limit; child tables append "_{field}"
FORM_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]{0,62}$")
SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_.:-]{1,128}$")


def _reject(kind: str, value: str) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "title": "Invalid Identifier",
            "detail": f"{kind} {value!r} contains unsupported characters",
            "code": "FORMSYNC_INVALID_IDENTIFIER",
        },
    )


def require_form_name(value: Optional[str]) -> str:
    token = (value or "").strip()
    if not FORM_NAME_RE.fullmatch(token):
        raise _reject("formName", token)
    return token


def require_session_id(value: Optional[str]) -> str:
    token = (value or "").strip()
    if not SESSION_ID_RE.fullmatch(token) or token in {".", ".."}:
        raise _reject("sessionId", token)
    return token


__all__ = ["FORM_NAME_RE", "SESSION_ID_RE", "require_form_name", "require_session_id"]
