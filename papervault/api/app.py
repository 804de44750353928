"""FastAPI application exposing the paper catalog over HTTP."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from papervault import __version__
from papervault.api.routers import common, papers
from papervault.config import Settings
from papervault.database.repository import PaperRepository
from papervault.errors import (
    DatabaseError,
    NotFoundError,
    PaperVaultError,
    StorageError,
    ValidationFailure,
)
from papervault.logging_setup import configure_logging
from papervault.services.paper_service import PaperService
from papervault.storage import build_object_store

logger = logging.getLogger(__name__)

# Public messages for system-side failures (no internals leak to callers)
_SYSTEM_ERRORS = {
    StorageError: "Failed to access file storage",
    DatabaseError: "Failed to access paper metadata",
}


def build_service(settings: Settings) -> PaperService:
    """Construct the repository and object store described by *settings*."""
    repo = PaperRepository(settings.db_path)
    store = build_object_store(settings.storage)
    return PaperService(repo, store)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailure)
    async def _validation_failure(request: Request, exc: ValidationFailure):
        return JSONResponse(
            {
                "error": exc.message,
                "code": exc.code,
                "details": [e.to_dict() for e in exc.errors],
            },
            status_code=400,
        )

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse({"error": "Paper not found", "code": exc.code}, status_code=404)

    @app.exception_handler(PaperVaultError)
    async def _system_failure(request: Request, exc: PaperVaultError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        message = _SYSTEM_ERRORS.get(type(exc), "An unexpected error occurred")
        return JSONResponse({"error": message, "code": exc.code}, status_code=500)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[PaperService] = None,
) -> FastAPI:
    """Build the API app.

    Pass *service* to run against pre-built collaborators (tests inject
    fakes here); otherwise the repository and object store are built from
    *settings* on startup and closed on shutdown.
    """
    if service is None:
        settings = settings or Settings.load()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize services on startup, release them on shutdown."""
        if service is None:
            configure_logging(settings.log_level)
            app.state.service = build_service(settings)
        try:
            yield
        finally:
            app.state.service.close()

    app = FastAPI(
        title="PaperVault API",
        description="Upload, list and search PDF papers",
        version=__version__,
        lifespan=lifespan,
    )
    if service is not None:
        app.state.service = service

    _register_error_handlers(app)
    app.include_router(common.router)
    app.include_router(papers.router, prefix="/api")

    if settings is not None and settings.storage.backend == "local":
        app.mount(
            "/files",
            StaticFiles(directory=settings.storage.root, check_dir=False),
            name="files",
        )
    return app
