"""Identity endpoints: who am I, share link and auth session."""

from typing import Optional

from fastapi import APIRouter, Depends  # type: ignore[import-untyped]

from daywatch.api.dependencies import get_auth_session, get_config, get_identity
from daywatch.api.models import IdentityResponse, SessionResponse
from daywatch.core.auth import Session
from daywatch.core.config import ConfigManager
from daywatch.core.identity import share_url

router = APIRouter()


@router.get("/identity", response_model=IdentityResponse)
async def get_current_identity(
    user_id: str = Depends(get_identity),
    config: ConfigManager = Depends(get_config),
) -> IdentityResponse:
    """Current identity and the link that shares it.

    The share link is only offered for anonymous identities; an
    authenticated subject cannot be adopted through a link.

    Example:
        >>> GET /api/v1/identity
        {
            "user_id": "8f9c...",
            "mode": "anonymous",
            "share_url": "http://localhost:8000/?user=8f9c..."
        }
    """
    mode = config.get("identity.mode", "anonymous")
    link = None
    if mode == "anonymous":
        link = share_url(config.get("identity.share_base_url", "http://localhost:8000/"), user_id)
    return IdentityResponse(user_id=user_id, mode=mode, share_url=link)


@router.get("/auth/session", response_model=SessionResponse)
async def get_session_status(
    session: Optional[Session] = Depends(get_auth_session),
) -> SessionResponse:
    """Current authentication session, if any.

    Clients use this to choose between the signed-out and signed-in views.
    """
    if session is None:
        return SessionResponse(signed_in=False)
    return SessionResponse(
        signed_in=True,
        subject=session.subject,
        expires_at=session.expires_at,
    )
