"""Session-based identity for the authenticated mode.

The external identity provider vouches for a subject; signing in issues a
JWT for that subject and keeps it in the local key-value store. The
session subject then replaces the anonymous identity. Until a session
exists the identity is None and dependent operations do nothing.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt  # type: ignore[import-untyped]

from daywatch.core.kvstore import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY = "session_token"
ALGORITHM = "HS256"


@dataclass
class Session:
    """An established session."""

    subject: str
    access_token: str
    expires_at: datetime


SessionListener = Callable[[Optional[Session]], None]


def create_access_token(
    data: dict[str, Any], secret_key: str, expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token.

    Args:
        data: Claims to encode in the token
        secret_key: Secret key for signing
        expires_delta: Lifetime of the token (default 24 hours)

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token(
        ...     data={"sub": "user"},
        ...     secret_key="your-secret-key",
        ...     expires_delta=timedelta(hours=24)
        ... )
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=24))
    to_encode.update({"exp": expire, "iat": now})

    encoded_jwt: str = jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str, secret_key: str) -> dict[str, Any]:
    """Decode and verify a JWT access token.

    Raises:
        JWTError: If the token is invalid or expired
    """
    payload: dict[str, Any] = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    return payload


def session_from_token(token: str, secret_key: str) -> Optional[Session]:
    """Build a Session from a token, or None if it does not verify."""
    try:
        payload = decode_access_token(token, secret_key)
    except JWTError as e:
        logger.info(f"Rejected session token: {e}")
        return None

    subject = payload.get("sub")
    if not subject:
        return None

    return Session(
        subject=str(subject),
        access_token=token,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


class AuthManager:
    """Sign-in, sign-out and session-change notifications."""

    def __init__(
        self,
        store: KeyValueStore,
        secret_key: str,
        token_expiry: timedelta = timedelta(hours=24),
    ):
        """Initialize auth manager.

        Args:
            store: Local key-value store holding the session token
            secret_key: Token signing key
            token_expiry: Lifetime of issued tokens
        """
        self.store = store
        self.secret_key = secret_key
        self.token_expiry = token_expiry
        self._listeners: list[SessionListener] = []

    def get_session(self) -> Optional[Session]:
        """Return the current session, or None when signed out or expired."""
        token = self.store.get(SESSION_KEY)
        if not token:
            return None
        return session_from_token(token, self.secret_key)

    @property
    def subject(self) -> Optional[str]:
        """Identity of the signed-in user, None until a session exists."""
        session = self.get_session()
        return session.subject if session else None

    def sign_in(self, subject: str) -> Session:
        """Start a session for a subject confirmed by the identity provider.

        Args:
            subject: Provider subject identifier

        Returns:
            The new session

        Raises:
            ValueError: If subject is empty
        """
        if not subject:
            raise ValueError("Subject must not be empty")

        token = create_access_token(
            {"sub": subject}, self.secret_key, expires_delta=self.token_expiry
        )
        self.store.set(SESSION_KEY, token)
        payload = decode_access_token(token, self.secret_key)
        session = Session(
            subject=subject,
            access_token=token,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
        logger.info(f"Signed in as {subject}")
        self._notify(session)
        return session

    def sign_out(self) -> None:
        """End the current session."""
        self.store.delete(SESSION_KEY)
        logger.info("Signed out")
        self._notify(None)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a session-change listener.

        Args:
            listener: Called with the new session (None on sign-out)

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, session: Optional[Session]) -> None:
        for listener in list(self._listeners):
            listener(session)
