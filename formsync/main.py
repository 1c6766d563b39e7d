from __future__ import annotations

import logging
from typing import Callable

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from formsync.config import load_config
from formsync.db.base import database_configured, get_engine
from formsync.http.problem import (
    handle_formsync_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from formsync.http.request_id import RequestIdMiddleware
from formsync.logging_setup import configure_logging
from formsync.logic.errors import FormSyncError
from formsync.middleware.cors import apply_cors
from formsync.routes import api_router

logger = logging.getLogger(__name__)


def _health_check() -> Callable[[], dict]:
    def check() -> dict:
        if not database_configured():
            # Store-less deployments are healthy; saves are file-only
            return {"status": "ok", "db": False}
        try:
            with get_engine().connect() as conn:
                conn.execute(sql_text("SELECT 1"))
            return {"status": "ok", "db": True}
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": str(e)}

    return check


def create_app() -> FastAPI:
    # Configure global logging before app instantiation so all modules emit
    configure_logging()
    config = load_config()
    logger.info(
        "app_config db_configured=%s data_dir=%s sync_enabled=%s",
        config.database.configured,
        config.storage.data_dir,
        config.sync.enabled,
    )

    app = FastAPI(title="formsync")
    app.add_exception_handler(FormSyncError, handle_formsync_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    apply_cors(app, origins=config.sync.cors_origins)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router, prefix="/api")

    health_check = _health_check()

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return health_check()

    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
