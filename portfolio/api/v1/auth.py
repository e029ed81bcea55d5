"""
Authentication endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Response, status

from portfolio.api.deps import CurrentIdentity, Sessions
from portfolio.api.errors import unwrap
from portfolio.core.session import Identity, SessionManager
from portfolio.schemas.auth import Credentials, IdentityResponse, RefreshRequest, SessionResponse

router = APIRouter()


def _identity_response(identity: Identity) -> IdentityResponse:
    return IdentityResponse(
        user_id=identity.user_id,
        email=identity.email,
        is_admin=identity.is_admin,
    )


def _session_response(sessions: SessionManager, identity: Identity) -> SessionResponse:
    session = sessions.session
    return SessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
        identity=_identity_response(identity),
    )


@router.post("/sign-up", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(data: Credentials, sessions: Sessions):
    """
    Register an identity and sign it in.

    New identities are never administrators.
    """
    identity = unwrap(await sessions.sign_up(data.email, data.password))
    return _session_response(sessions, identity)


@router.post("/sign-in", response_model=SessionResponse)
async def sign_in(data: Credentials, sessions: Sessions):
    identity = unwrap(await sessions.sign_in(data.email, data.password))
    return _session_response(sessions, identity)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(sessions: Sessions, data: Optional[RefreshRequest] = None):
    """Revoke the given refresh token, if any, and end the session."""
    unwrap(await sessions.sign_out(data.refresh_token if data else None))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/refresh", response_model=SessionResponse)
async def refresh(data: RefreshRequest, sessions: Sessions):
    identity = unwrap(await sessions.refresh(data.refresh_token))
    return _session_response(sessions, identity)


@router.get("/me", response_model=IdentityResponse)
async def me(identity: CurrentIdentity):
    return _identity_response(identity)
