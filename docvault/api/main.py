"""FastAPI application entrypoint for DocVault."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docvault.api.middleware.logging import LoggingMiddleware
from docvault.api.routes import admin, documents
from docvault.core.config import get_settings
from docvault.core.container import Container, build_container
from docvault.core.exceptions import ApplicationError
from docvault.core.logging import configure_logging
from docvault.core.observability import setup_tracing


def create_app(container: Optional[Container] = None) -> FastAPI:
    """Build the API. A caller-supplied container is used as-is and not closed on shutdown."""

    settings = container.settings if container is not None else get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Wire shared clients on startup and release them on shutdown."""

        owned = container is None
        if owned:
            app.state.container = build_container(settings)
        try:
            yield
        finally:
            if owned:
                await app.state.container.close()

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    setup_tracing(settings, app)

    if container is not None:
        app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.include_router(documents.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")

    @app.exception_handler(ApplicationError)
    async def handle_application_error(_: Request, exc: ApplicationError):
        """Return standardized responses for application layer exceptions."""

        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

    return app
