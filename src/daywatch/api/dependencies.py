"""Dependency injection for FastAPI endpoints.

This module provides dependency functions for use with FastAPI's dependency
injection system. These dependencies provide access to core Daywatch
components like configuration, the caller's identity, the record store
and the tracker.
"""

from typing import Optional

from fastapi import Depends, Request, Response  # type: ignore[import-untyped]
from fastapi.security import HTTPAuthorizationCredentials  # type: ignore[import-untyped]

from daywatch.api.auth import CookieKeyValueStore, bearer, read_session, require_session
from daywatch.core.auth import Session
from daywatch.core.config import ConfigManager
from daywatch.core.identity import IdentityResolver
from daywatch.core.kvstore import FileKeyValueStore
from daywatch.core.session import RecordSession
from daywatch.core.stopwatch import Stopwatch
from daywatch.core.storage import RecordStore, create_store
from daywatch.core.tracker import TimeTracker


def get_config(request: Request = None) -> ConfigManager:  # type: ignore[assignment,misc]
    """Get configuration manager instance.

    Args:
        request: FastAPI Request object (when used as dependency)

    Returns:
        ConfigManager instance from app state or new instance
    """
    if request is not None and hasattr(request, "app"):
        if hasattr(request.app.state, "config"):
            config: ConfigManager = request.app.state.config
            return config
    return ConfigManager()


def get_auth_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[Session]:
    """Session of the bearer token, None when absent or invalid."""
    return read_session(credentials, get_config(request))


def get_store(
    request: Request = None,  # type: ignore[assignment]
    auth_session: Optional[Session] = Depends(get_auth_session),
) -> RecordStore:
    """Get the configured record store.

    In authenticated mode the caller's session token is passed on to the
    remote table.

    Args:
        request: FastAPI request object (injected) or None for direct call
        auth_session: Session of the bearer token, if any

    Returns:
        RecordStore instance
    """
    config = get_config(request)
    access_token = None
    if auth_session is not None and config.get("identity.mode") == "authenticated":
        access_token = auth_session.access_token
    return create_store(config, FileKeyValueStore(config.state_file), access_token)


def get_identity(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> str:
    """Identity of the caller.

    Authenticated mode: the subject of the bearer token (401 without one).
    Anonymous mode: the ``user`` query parameter, else the ``user_id``
    cookie, else a new identity. The result is written back as a cookie.
    """
    config = get_config(request)
    if config.get("identity.mode", "anonymous") == "authenticated":
        return require_session(credentials, config).subject

    store = CookieKeyValueStore(request, response)
    return IdentityResolver(store).resolve(request.query_params)


def get_session(
    request: Request,
    user_id: str = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> RecordSession:
    """Record session of the caller (not yet loaded)."""
    config = get_config(request)
    return RecordSession(store, user_id, tz=config.get_timezone())


def get_stopwatch(request: Request, user_id: str = Depends(get_identity)) -> Stopwatch:
    """Stopwatch of the caller, kept for the server's lifetime."""
    stopwatches: dict[str, Stopwatch] = request.app.state.stopwatches
    if user_id not in stopwatches:
        stopwatches[user_id] = Stopwatch()
    return stopwatches[user_id]


def get_tracker(
    session: RecordSession = Depends(get_session),
    stopwatch: Stopwatch = Depends(get_stopwatch),
) -> TimeTracker:
    """Tracker for the caller."""
    return TimeTracker(session, stopwatch)
