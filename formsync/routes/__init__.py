"""APIRouter registration for the form sync service."""

from __future__ import annotations

from fastapi import APIRouter

from formsync.routes.forms import router as forms_router
from formsync.routes.records import router as records_router
from formsync.routes.submissions import router as submissions_router

api_router = APIRouter()
api_router.include_router(submissions_router, tags=["Submissions"])
api_router.include_router(records_router, tags=["Records"])
api_router.include_router(forms_router, tags=["Admin"])

__all__ = ["api_router"]
