"""
FastAPI Application Factory & Configuration.

This module initializes the FastAPI application that serves the assembled
story to a browser-side renderer. It is responsible for:
1.  **Middleware Setup**: CORS so a static page on another origin can fetch.
2.  **Exception Handling**: pipeline errors become structured JSON, keeping
    their stage context and detail.
3.  **Routing**: Mounting the story router and the health probe.

Design Pattern
--------------
We use an **Application Factory** pattern (`create_app`), so tests can build
isolated app instances with their own settings.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scrollystory import __version__
from scrollystory.api.routers import story
from scrollystory.core.errors import (
    MalformedSource,
    MissingSheet,
    ScrollyError,
    SourceUnavailable,
    ValidationError,
)
from scrollystory.core.settings import Settings, get_logger, load_settings

logger = get_logger(__name__)

# Sheet content problems are the author's to fix; an unreachable source is a
# gateway failure.
_STATUS_BY_ERROR: tuple[tuple[type[ScrollyError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (MissingSheet, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (MalformedSource, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (SourceUnavailable, status.HTTP_502_BAD_GATEWAY),
)


def status_for(exc: ScrollyError) -> int:
    """Return the HTTP status code used to report ``exc``."""
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Construct and configure the scrollystory FastAPI application.

    Parameters
    ----------
    settings:
        Configuration for the story source. Defaults to :func:`load_settings`.

    Returns
    -------
    FastAPI
        The configured ASGI application ready to be served by Uvicorn.
    """
    cfg = settings or load_settings()

    app = FastAPI(
        title="scrollystory API",
        description="Story/Steps spreadsheets -> scrolly page block tree",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = cfg

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Exception Handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(ScrollyError)
    async def scrolly_error_handler(request: Request, exc: ScrollyError) -> JSONResponse:
        """Report a pipeline failure with its context and detail."""
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        payload = exc.to_dict()
        payload["path"] = request.url.path
        return JSONResponse(status_code=status_for(exc), content=payload)

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    app.include_router(story.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        """Simple liveness probe."""
        return {"status": "ok", "environment": cfg.environment, "version": __version__}

    return app


def get_app() -> FastAPI:
    """Build an app with the current settings (used by tests and uvicorn)."""
    return create_app(load_settings())


__all__ = ["create_app", "get_app", "status_for"]
