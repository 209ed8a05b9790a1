"""Anonymous identity resolution.

An identity is a random token kept in the local key-value store. Passing
``user=<token>`` (query parameter or the CLI's ``--user``) adopts that
token, which is how a tracker is shared by link. This is a sharing
mechanism, not an authorization boundary.
"""

import logging
from collections.abc import Mapping
from typing import Optional
from urllib.parse import urlencode, urlsplit, urlunsplit
from uuid import uuid4

from daywatch.core.kvstore import KeyValueStore

logger = logging.getLogger(__name__)

USER_PARAM = "user"
USER_KEY = "user_id"


class IdentityResolver:
    """Resolve the active anonymous identity."""

    def __init__(self, store: KeyValueStore):
        """Initialize resolver.

        Args:
            store: Local key-value store holding the identity token
        """
        self.store = store

    def resolve(self, params: Optional[Mapping[str, str]] = None) -> str:
        """Return the active identifier, creating one if needed.

        Args:
            params: Query parameters of the current request/invocation

        Returns:
            User identifier
        """
        shared = (params or {}).get(USER_PARAM)
        if shared:
            if self.store.get(USER_KEY) != shared:
                logger.info(f"Adopting shared identity {shared}")
            self.store.set(USER_KEY, shared)
            return shared

        existing = self.store.get(USER_KEY)
        if existing:
            return existing

        user_id = str(uuid4())
        self.store.set(USER_KEY, user_id)
        logger.info(f"Created new identity {user_id}")
        return user_id


def share_url(base_url: str, user_id: str) -> str:
    """Build the link that opens the tracker as ``user_id``.

    Existing query parameters of ``base_url`` are kept, except ``user``.

    Example:
        >>> share_url("https://example.com/app", "abc")
        'https://example.com/app?user=abc'
    """
    parts = urlsplit(base_url)
    kept = [p for p in parts.query.split("&") if p and not p.startswith(f"{USER_PARAM}=")]
    kept.append(urlencode({USER_PARAM: user_id}))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "&".join(kept), parts.fragment))
