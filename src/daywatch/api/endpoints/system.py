"""System endpoints for health checks and status.

This module provides endpoints for checking the API health status
and retrieving system information.
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request  # type: ignore[import-untyped]

from daywatch import __version__
from daywatch.api.dependencies import get_config
from daywatch.api.models import HealthResponse, StatusResponse
from daywatch.core.config import ConfigManager

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint.

    Returns:
        Health status information

    Note:
        This endpoint is public (no identity required).

    Example:
        >>> GET /api/v1/health
        {
            "status": "healthy",
            "timestamp": "2025-11-16T10:30:00Z",
            "version": "0.3.0"
        }
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(
    request: Request,
    config: ConfigManager = Depends(get_config),
) -> StatusResponse:
    """Get system status.

    Example:
        >>> GET /api/v1/status
        {
            "identity_mode": "anonymous",
            "storage_backend": "csv",
            "cors_enabled": true,
            "running_stopwatches": 1,
            "uptime_seconds": 3600.5
        }
    """
    stopwatches = request.app.state.stopwatches.values()

    return StatusResponse(
        identity_mode=config.get("identity.mode", "anonymous"),
        storage_backend=config.get("storage.backend", "csv"),
        cors_enabled=config.get("api.cors.enabled", True),
        running_stopwatches=sum(1 for s in stopwatches if s.is_running),
        uptime_seconds=time.time() - _server_start_time,
    )
