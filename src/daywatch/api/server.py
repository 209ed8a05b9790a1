"""FastAPI application server.

This module contains the main FastAPI application setup and server runner.
"""

import os
from pathlib import Path
from typing import Optional

from fastapi import FastAPI  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

from daywatch import __version__
from daywatch.api.middleware import setup_middleware
from daywatch.core.config import ConfigManager

CONFIG_ENV = "DAYWATCH_CONFIG"


def create_app(config: Optional[ConfigManager] = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: Optional configuration manager. If None, loads the file named
            by $DAYWATCH_CONFIG, else the default config file.

    Returns:
        Configured FastAPI application instance
    """
    if config is None:
        config_path = os.environ.get(CONFIG_ENV)
        config = ConfigManager(Path(config_path) if config_path else None)

    app = FastAPI(
        title="Daywatch API",
        description="Stopwatch and daily time log",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Store config in app state for dependency injection
    app.state.config = config
    # Running stopwatches by identity
    app.state.stopwatches = {}

    setup_middleware(app, config)

    from daywatch.api.endpoints import days, identity, records, stopwatch, system

    app.include_router(system.router, prefix="/api/v1", tags=["system"])
    app.include_router(identity.router, prefix="/api/v1", tags=["identity"])
    app.include_router(records.router, prefix="/api/v1/records", tags=["records"])
    app.include_router(stopwatch.router, prefix="/api/v1/stopwatch", tags=["stopwatch"])
    app.include_router(days.router, prefix="/api/v1/days", tags=["days"])

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Root endpoint - points to the docs."""
        return JSONResponse(
            {
                "message": "Daywatch API",
                "version": __version__,
                "docs": "/docs",
                "health": "/api/v1/health",
            }
        )

    return app


def run_server(
    host: str = "localhost",
    port: int = 8000,
    reload: bool = False,
    ssl_certfile: Optional[Path] = None,
    ssl_keyfile: Optional[Path] = None,
    config: Optional[ConfigManager] = None,
) -> None:
    """Run the API server using Uvicorn.

    Runs a single worker: stopwatches live in the process.

    Args:
        host: Host address to bind to
        port: Port number to bind to
        reload: Enable auto-reload for development
        ssl_certfile: Path to SSL certificate file
        ssl_keyfile: Path to SSL key file
        config: Optional configuration manager

    Note:
        This function blocks until the server is stopped.
    """
    import uvicorn  # type: ignore[import-untyped]

    if config is None:
        config = ConfigManager()

    # The factory runs in the server process and reloads the same file
    os.environ[CONFIG_ENV] = str(config.config_path)

    uvicorn_config = {
        "app": "daywatch.api.server:create_app",
        "factory": True,
        "host": host,
        "port": port,
        "reload": reload,
        "workers": 1,
        "log_level": config.get("api.advanced.log_level", "info"),
        "access_log": config.get("api.advanced.access_log", True),
    }

    if ssl_certfile and ssl_keyfile:
        uvicorn_config.update(
            {
                "ssl_certfile": str(ssl_certfile),
                "ssl_keyfile": str(ssl_keyfile),
            }
        )

    uvicorn.run(**uvicorn_config)
