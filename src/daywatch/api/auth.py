"""Authentication and identity storage for the API.

In authenticated mode the caller's identity is the subject of a bearer JWT
signed with the configured secret key. In anonymous mode the browser's
cookie jar plays the role of the local key-value store.
"""

from datetime import timedelta
from typing import Any, Optional

from fastapi import HTTPException, Request, Response, status  # type: ignore[import-untyped]
from fastapi.security import (  # type: ignore[import-untyped]
    HTTPAuthorizationCredentials,
    HTTPBearer,
)

from daywatch.core.auth import Session, create_access_token, session_from_token
from daywatch.core.config import ConfigManager
from daywatch.core.kvstore import KeyValueStore

# Security scheme for dependency injection; missing credentials are handled
# by require_session so anonymous mode works without a header
bearer = HTTPBearer(auto_error=False)

COOKIE_MAX_AGE = 365 * 24 * 60 * 60


class CookieKeyValueStore(KeyValueStore):
    """Key-value store over request cookies, writing to the response."""

    def __init__(self, request: Request, response: Response):
        self.request = request
        self.response = response
        self._written: dict[str, Optional[str]] = {}

    def get(self, key: str) -> Optional[str]:
        if key in self._written:
            return self._written[key]
        value: Optional[str] = self.request.cookies.get(key)
        return value

    def set(self, key: str, value: str) -> None:
        self._written[key] = value
        self.response.set_cookie(key, value, max_age=COOKIE_MAX_AGE, samesite="lax")

    def delete(self, key: str) -> None:
        self._written[key] = None
        self.response.delete_cookie(key)


def read_session(
    credentials: Optional[HTTPAuthorizationCredentials], config: ConfigManager
) -> Optional[Session]:
    """Session of the bearer credentials, None when absent or invalid."""
    secret_key = config.get("auth.secret_key")
    if credentials is None or not secret_key:
        return None
    return session_from_token(credentials.credentials, secret_key)


def require_session(
    credentials: Optional[HTTPAuthorizationCredentials], config: ConfigManager
) -> Session:
    """Verify the bearer token of a request.

    Raises:
        HTTPException: 500 without a configured secret key, 401 if the token
            is missing, invalid or expired
    """
    if not config.get("auth.secret_key"):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token secret key not configured",
        )

    session = read_session(credentials, config)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


def get_token_expiry_seconds(config: ConfigManager) -> int:
    """Token expiry time in seconds from config."""
    hours: int = config.get("auth.token_expiry_hours", 24)
    return hours * 3600


def create_token_for_user(
    config: ConfigManager,
    user_id: str,
    expires_delta: Optional[timedelta] = None,
) -> dict[str, Any]:
    """Create a complete token response.

    Args:
        config: Configuration manager
        user_id: Subject confirmed by the identity provider
        expires_delta: Token lifetime (default: from config)

    Returns:
        Dictionary with access_token, token_type, and expires_in
    """
    secret_key = config.ensure_secret_key()

    if expires_delta is None:
        expires_delta = timedelta(seconds=get_token_expiry_seconds(config))

    access_token = create_access_token(
        data={"sub": user_id}, secret_key=secret_key, expires_delta=expires_delta
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": int(expires_delta.total_seconds()),
    }
