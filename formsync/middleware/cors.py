"""CORS configuration helpers.

Generated form pages are served from a separate static host, so the save
and record endpoints must accept cross-origin requests.
"""

from __future__ import annotations

from typing import Iterable
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


EXPOSE_HEADERS: list[str] = ["X-Request-Id"]


def apply_cors(app: FastAPI, *, origins: Iterable[str] | None = None) -> None:
    allow = list(origins or ["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow,
        # Browsers reject credentials with a wildcard origin
        allow_credentials="*" not in allow,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-Id"],
        expose_headers=EXPOSE_HEADERS,
    )


__all__ = ["apply_cors", "EXPOSE_HEADERS"]
