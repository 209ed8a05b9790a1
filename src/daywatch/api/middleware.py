"""Middleware and error handlers for the FastAPI application.

This module provides CORS, request logging and the translation of domain
errors into HTTP responses.
"""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status  # type: ignore[import-untyped]
from fastapi.middleware.cors import CORSMiddleware  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse, Response  # type: ignore[import-untyped]

from daywatch.core.config import ConfigManager
from daywatch.core.models import RecordValidationError
from daywatch.core.storage import StorageError

logger = logging.getLogger(__name__)


def setup_cors(app: FastAPI, config: ConfigManager) -> None:
    """Configure CORS middleware.

    Args:
        app: FastAPI application instance
        config: Configuration manager

    Note:
        CORS is configured based on the api.cors section in config.
        By default, only localhost origins are allowed.
    """
    if not config.get("api.cors.enabled", True):
        return

    origins = config.get("api.cors.origins", ["http://localhost:3000"])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def setup_request_logging(app: FastAPI) -> None:
    """Log method, path, status and latency of every request."""

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)"
        )
        return response


def setup_error_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses.

    RecordValidationError becomes 400 and StorageError 502.
    """

    @app.exception_handler(RecordValidationError)
    async def validation_error_handler(
        request: Request, exc: RecordValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})


def setup_middleware(app: FastAPI, config: ConfigManager) -> None:
    """Set up all middleware for the application.

    Args:
        app: FastAPI application instance
        config: Configuration manager
    """
    setup_cors(app, config)
    setup_request_logging(app)
    setup_error_handlers(app)
