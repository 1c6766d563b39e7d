"""FastAPI application package for the form sync service.

This package exposes a small FastAPI application factory. Business logic
(schema mapping, provisioning, synchronization, reads and teardown) lives in
`formsync/logic/`; route handlers live in `formsync/routes/`.
"""

from __future__ import annotations

from formsync.main import create_app

__all__ = ["create_app"]
