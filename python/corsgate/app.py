"""FastAPI host application.

Creates an application instance with the CORS middleware installed, the
exception handlers registered, and a couple of plain routes. The CORS
policy comes from the explicit options argument when given, otherwise
from the CORS_* environment settings.

Middleware Ordering:
- CORSMiddleware is the outermost user middleware. Preflights and rejected
  origins are answered before ExceptionMiddleware or any route runs.
- Starlette's ServerErrorMiddleware still wraps it. 500 responses for
  unhandled exceptions are built there and carry no CORS headers.
"""

from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from corsgate.config import get_settings
from corsgate.cors.options import CORSOptions
from corsgate.errors import ApiError
from corsgate.logging import configure_logging, get_logger
from corsgate.middleware.cors import RejectionObserver, add_cors_middleware
from corsgate.responses import (
    api_error_handler,
    http_exception_handler,
    success_response,
    unhandled_exception_handler,
)

logger = get_logger(__name__)


def create_app(
    options: CORSOptions | Mapping[str, Any] | None = None,
    observer: RejectionObserver | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        options: CORS options. Loaded from settings when None.
        observer: Optional observer for rejected CORS requests (for testing).

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    configure_logging(json_format=settings.log_json)

    app = FastAPI(
        title="corsgate",
        description="CORS policy middleware for Starlette and FastAPI applications",
        version="0.1.0",
    )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return "ok"

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return success_response({"status": "ok", "env": settings.corsgate_env.value})

    if options is None:
        options = settings.cors_options()
    add_cors_middleware(app, options=options, observer=observer)

    return app
