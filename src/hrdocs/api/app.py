"""FastAPI application with lifespan, error mapping and router mounting."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hrdocs.api.routes import health, payslips, storage, users
from hrdocs.core.config import AppSettings
from hrdocs.core.exceptions import (
    CommitFailed,
    HRDocsError,
    LookupFailure,
    PayslipNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from hrdocs.core.logging import configure_logging
from hrdocs.persistence import Persistence, create_persistence

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[HRDocsError], int], ...] = (
    (ValidationError, 400),
    (UserNotFoundError, 404),
    (PayslipNotFoundError, 404),
    (LookupFailure, 503),
    (CommitFailed, 500),
)


def status_for(exc: HRDocsError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


async def hrdocs_error_handler(request: Request, exc: HRDocsError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"ok": False, "error": str(exc)})


def create_app(settings: AppSettings | None = None,
               persistence: Persistence | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Tests pass ``persistence`` (usually memory backends) to skip the SQL engine.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app_settings = settings or AppSettings()
        configure_logging(app_settings.log_level)
        app.state.settings = app_settings
        app.state.persistence = persistence or create_persistence(app_settings)
        logger.info("hrdocs API starting (environment=%s)", app_settings.environment)
        yield

    app = FastAPI(
        title="HR Documents Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(HRDocsError, hrdocs_error_handler)
    app.include_router(health.router)
    app.include_router(users.router, prefix="/api/users")
    app.include_router(payslips.router, prefix="/api")
    app.include_router(storage.router, prefix="/api/storage")
    return app
