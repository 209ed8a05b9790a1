"""REST API for Daywatch.

This module provides a FastAPI-based REST API serving the stopwatch, the
time record log and the daily totals to a browser or any HTTP client.

Key features:
- Record list, manual entries, duration edits and deletes
- Server-side stopwatch per identity (start/stop/elapsed)
- Daily totals with today's total first
- Anonymous link-shared identities or JWT-based sessions
- CORS support and request logging
- OpenAPI documentation

Usage:
    # Start server
    daywatch api serve

    # Access API docs
    http://localhost:8000/docs
"""

__all__ = ["create_app", "run_server"]

from daywatch.api.server import create_app, run_server  # noqa: F401
