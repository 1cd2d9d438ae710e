"""FastAPI application factory for the pulseconfig editor service."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from pulseconfig import __version__
from pulseconfig.api.deps import init_session_manager, reset_session_manager
from pulseconfig.api.middleware import RequestBodyLimitMiddleware, RequestTimingMiddleware
from pulseconfig.api.routers import markers, sessions, versions
from pulseconfig.api.schemas import HealthResponse
from pulseconfig.backend import create_backend
from pulseconfig.service.session_manager import SessionManager
from pulseconfig.settings import Settings

logger = logging.getLogger("pulseconfig.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Start/stop the backend and SessionManager alongside the application."""
    settings: Settings = app.state.settings
    backend = create_backend(settings)
    mgr = SessionManager(
        backend,
        ttl_seconds=settings.session_ttl_seconds,
        cleanup_interval=settings.session_cleanup_interval,
    )
    mgr.start()
    init_session_manager(mgr, disable_session_list=settings.disable_session_list)
    logger.info("Using %s configuration backend", settings.backend)
    try:
        yield
    finally:
        mgr.stop()
        reset_session_manager()
        await backend.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Pulse Configuration Editor",
        description=(
            "Edits, validates and applies monitoring configuration documents, "
            "mapping server findings to editor annotations."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware
    app.add_middleware(RequestBodyLimitMiddleware)
    app.add_middleware(RequestTimingMiddleware)

    app.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
    app.include_router(markers.router, prefix="/markers", tags=["markers"])
    app.include_router(versions.router, prefix="/versions", tags=["versions"])

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__, backend=settings.backend)

    return app


def main() -> None:
    """Run the REST API server using settings from environment / .env file."""
    settings = Settings()

    logging.basicConfig(level=settings.log_level.upper())
    logger.info(
        "pulseconfig API server v%s starting (host=%s, port=%d, backend=%s)",
        __version__,
        settings.api_server_host,
        settings.api_server_port,
        settings.backend,
    )

    uvicorn.run(
        "pulseconfig.api.app:create_app",
        factory=True,
        host=settings.api_server_host,
        port=settings.api_server_port,
        log_level=settings.log_level.lower(),
    )
