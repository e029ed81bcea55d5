"""
FastAPI dependencies: store client, session manager, authorization gate and
repositories.

One StoreClient is built per request (or WebSocket) so that store requests run
as the caller's identity. All clients share the process-wide change feed.
"""

from typing import Annotated, AsyncIterator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.config import Settings, get_settings
from portfolio.core.gate import AuthorizationGate, GateMode
from portfolio.core.repository import ArticleRepository, ProjectRepository
from portfolio.core.session import Identity, SessionManager
from portfolio.database import async_session_maker
from portfolio.kernel.store import ChangeFeed, StoreClient

security = HTTPBearer(auto_error=False)

_change_feed = ChangeFeed()


def get_change_feed() -> ChangeFeed:
    return _change_feed


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    return async_session_maker


AppSettings = Annotated[Settings, Depends(get_settings)]


def get_store(
    session_maker: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)],
    changes: Annotated[ChangeFeed, Depends(get_change_feed)],
) -> StoreClient:
    """A fresh, anonymous store client."""
    return StoreClient(session_maker, changes=changes)


Store = Annotated[StoreClient, Depends(get_store)]


async def get_session_manager(
    store: Store,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> AsyncIterator[SessionManager]:
    """Session manager for the caller; a bearer token restores its session."""
    if credentials:
        await store.auth.set_session(credentials.credentials)
    sessions = SessionManager(store.auth, store.table("profiles"))
    await sessions.start()
    try:
        yield sessions
    finally:
        sessions.close()


Sessions = Annotated[SessionManager, Depends(get_session_manager)]


async def get_current_identity(sessions: Sessions) -> Identity:
    """The signed-in identity or 401."""
    if sessions.identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return sessions.identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


async def require_gate(sessions: Sessions, settings: AppSettings) -> Identity:
    """
    Authorization gate for the management surface.

    A denied gate answers 401 with the sign-in path in ``Location``.
    """
    gate = AuthorizationGate(
        sessions,
        mode=GateMode(settings.admin_gate_mode),
        sign_in_path=settings.sign_in_path,
    )
    decision = await gate.resolve()
    if not decision.granted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"reason": decision.reason.value, "redirect_to": decision.redirect_to},
            headers={"Location": decision.redirect_to, "WWW-Authenticate": "Bearer"},
        )
    return decision.identity


GatedIdentity = Annotated[Identity, Depends(require_gate)]


async def get_project_repository(store: Store, _: GatedIdentity) -> AsyncIterator[ProjectRepository]:
    repository = ProjectRepository(store)
    try:
        yield repository
    finally:
        repository.close()


async def get_article_repository(store: Store, _: GatedIdentity) -> AsyncIterator[ArticleRepository]:
    repository = ArticleRepository(store)
    try:
        yield repository
    finally:
        repository.close()


Projects = Annotated[ProjectRepository, Depends(get_project_repository)]
Articles = Annotated[ArticleRepository, Depends(get_article_repository)]

