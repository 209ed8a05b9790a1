"""API endpoints.

This package contains all API endpoint routers organized by resource type.
Each module defines a FastAPI router that is included in the main application.

Available routers:
- system: Health checks and system status
- identity: Current identity, share link and auth session
- records: Time record list and mutations
- stopwatch: Start/stop and elapsed time
- days: Totals grouped by calendar day
"""

__all__ = ["system", "identity", "records", "stopwatch", "days"]

from daywatch.api.endpoints import (  # noqa: F401
    days,
    identity,
    records,
    stopwatch,
    system,
)
