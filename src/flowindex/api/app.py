"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from flowindex.api.routes import flows, health, jobs
from flowindex.core.config import AppSettings
from flowindex.core.exceptions import DecodeError, InvalidArgument, NotFoundError, StorageError
from flowindex.core.logging import configure_logging
from flowindex.core.protocols import ISortedStore
from flowindex.services import create_services

_ERROR_STATUS: dict[type[Exception], int] = {
    NotFoundError: 404,
    InvalidArgument: 400,
    DecodeError: 400,
    StorageError: 503,
}


def create_app(settings: AppSettings | None = None, store: ISortedStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app_settings = settings or AppSettings()
        configure_logging(json_output=app_settings.json_logs, level=app_settings.log_level)
        app.state.settings = app_settings
        app.state.status_index, app.state.job_index = create_services(app_settings, store)
        yield

    app = FastAPI(
        title="flowindex",
        version="0.1.0",
        lifespan=lifespan,
    )

    async def handle_index_error(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=_ERROR_STATUS[type(exc)], content={"detail": str(exc)})

    for exc_type in _ERROR_STATUS:
        app.add_exception_handler(exc_type, handle_index_error)

    app.include_router(health.router)
    app.include_router(flows.router, prefix="/flows")
    app.include_router(jobs.router, prefix="/jobs")
    return app
