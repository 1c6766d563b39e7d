"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and handler callables that produce
application/problem+json responses.
"""

from __future__ import annotations

import logging
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from formsync.http.error_mapping import lookup
from formsync.logic.errors import FormSyncError, SchemaMismatch

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_response(status: int, title: str, detail: str = "", **extra: object) -> JSONResponse:
    body: dict = {"title": title, "status": status}
    if detail:
        body["detail"] = detail
    body.update(extra)
    return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status = int(getattr(exc, "status_code", 500) or 500)
    if isinstance(exc.detail, dict):
        body = {"status": status, **exc.detail}
        return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=exc.headers)
    return JSONResponse(
        {"title": "Error", "status": status, "detail": str(exc.detail or "")},
        status_code=status,
        media_type=PROBLEM_MEDIA_TYPE,
        headers=exc.headers,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    return problem_response(
        422,
        "Invalid Request",
        "Request validation failed",
        errors=[{"loc": list(e.get("loc", [])), "msg": str(e.get("msg", ""))} for e in exc.errors()],
    )


async def handle_formsync_error(request: Request, exc: FormSyncError) -> JSONResponse:  # noqa: D401
    entry = lookup(exc)
    status = int(entry["status"])  # type: ignore[arg-type]
    extra: dict = {"code": entry["code"]}
    if isinstance(exc, SchemaMismatch):
        if exc.field:
            extra["field"] = exc.field
        if exc.candidates:
            extra["candidates"] = exc.candidates
    if status >= 500:
        logger.error("request_failed path=%s code=%s", request.url.path, entry["code"], exc_info=exc)
    else:
        logger.info("request_rejected path=%s code=%s detail=%s", request.url.path, entry["code"], exc)
    return problem_response(status, str(entry["title"]), str(exc), **extra)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return problem_response(500, "Internal Server Error")


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_response",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_formsync_error",
    "handle_unexpected_error",
]
