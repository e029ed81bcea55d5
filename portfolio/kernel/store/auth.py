"""
Auth subsystem of the store.

Holds the current session for one client and notifies listeners on every
auth-state transition. Sign-up also creates the identity's profile row with
the administrator flag off.
"""

import inspect
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Union

from pydantic import BaseModel
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.kernel.identity.jwt import JWTManager, TokenExpired, TokenPair
from portfolio.kernel.identity.password import hash_password, verify_password
from portfolio.kernel.models import Profile, RefreshToken, User
from portfolio.kernel.store.errors import (
    ConstraintError,
    InvalidCredentialsError,
    SessionExpiredError,
    UserAlreadyRegisteredError,
)
from portfolio.kernel.store.sessions import store_session
from portfolio.logging_config import get_logger

logger = get_logger(__name__)


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class AuthUser(BaseModel):
    id: uuid.UUID
    email: str


class AuthSession(BaseModel):
    """An authenticated session as seen by the client."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime
    user: AuthUser

    @property
    def expired(self) -> bool:
        return self.expires_at <= datetime.now(timezone.utc)


AuthListener = Callable[[AuthEvent, Optional[AuthSession]], Union[Awaitable[None], None]]


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthClient:
    """
    Per-client auth state.

    Usage:
        unsubscribe = store.auth.on_auth_state_change(handler)
        await store.auth.sign_in("owner@example.com", "secret")
        ...
        unsubscribe()
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        jwt_manager: Optional[JWTManager] = None,
    ):
        self._session_maker = session_maker
        self.jwt_manager = jwt_manager or JWTManager()
        self._current: Optional[AuthSession] = None
        self._listeners: List[AuthListener] = []

    @property
    def current_session(self) -> Optional[AuthSession]:
        return self._current

    def acting_user_id(self) -> Optional[uuid.UUID]:
        """Identity that store requests run as; expired sessions act anonymously."""
        if self._current is None or self._current.expired:
            return None
        return self._current.user.id

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        logger.debug("Auth state change: %s", event.value)
        for listener in list(self._listeners):
            result = listener(event, session)
            if inspect.isawaitable(result):
                await result

    async def _issue_session(self, db: AsyncSession, user: User) -> AuthSession:
        pair: TokenPair = self.jwt_manager.create_token_pair(user.id, user.email)
        db.add(RefreshToken(
            user_id=user.id,
            token_hash=JWTManager.hash_token(pair.refresh_token),
            expires_at=datetime.now(timezone.utc)
            + timedelta(days=self.jwt_manager.refresh_token_expire_days),
        ))
        return AuthSession(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            expires_at=pair.expires_at,
            user=AuthUser(id=user.id, email=user.email),
        )

    async def sign_up(self, email: str, password: str) -> AuthSession:
        """
        Create an identity and its profile, then sign in.

        Raises:
            UserAlreadyRegisteredError: If the email is taken
        """
        email = normalize_email(email)
        try:
            async with store_session(self._session_maker, "users") as db:
                existing = await db.execute(select(User.id).where(User.email == email))
                if existing.scalar_one_or_none() is not None:
                    raise UserAlreadyRegisteredError()
                user = User(email=email, password_hash=hash_password(password))
                db.add(user)
                await db.flush()
                db.add(Profile(id=user.id, email=email, is_admin=False))
                await db.commit()
        except ConstraintError as exc:
            # Concurrent sign-up with the same email
            raise UserAlreadyRegisteredError() from exc
        logger.info("Identity registered", extra={"user_id": str(user.id)})
        return await self.sign_in(email, password)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Authenticate with email and password.

        Raises:
            InvalidCredentialsError: Unknown email, wrong password or disabled identity
        """
        async with store_session(self._session_maker, "users") as db:
            result = await db.execute(select(User).where(User.email == normalize_email(email)))
            user = result.scalar_one_or_none()
            if user is None or not user.is_active or not verify_password(password, user.password_hash):
                raise InvalidCredentialsError()
            session = await self._issue_session(db, user)
            await db.commit()

        self._current = session
        await self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_out(self, refresh_token: Optional[str] = None) -> None:
        """Revoke the refresh token (given or current) and drop the session."""
        current = self._current
        token = refresh_token or (current.refresh_token if current is not None else None)
        try:
            if token:
                token_hash = JWTManager.hash_token(token)
                async with store_session(self._session_maker, "refresh_tokens") as db:
                    result = await db.execute(
                        select(RefreshToken).where(RefreshToken.token_hash == token_hash)
                    )
                    record = result.scalar_one_or_none()
                    if record is not None:
                        record.revoked = True
                        await db.commit()
        finally:
            self._current = None
            await self._emit(AuthEvent.SIGNED_OUT, None)

    async def refresh_session(self, refresh_token: Optional[str] = None) -> AuthSession:
        """
        Exchange a refresh token for a new session; the old token is revoked.

        Raises:
            SessionExpiredError: If the refresh token is invalid, expired or revoked
        """
        token = refresh_token or (self._current.refresh_token if self._current else None)
        if not token:
            raise SessionExpiredError()
        payload = self.jwt_manager.verify_refresh_token(token)
        if payload is None:
            raise SessionExpiredError()

        async with store_session(self._session_maker, "refresh_tokens") as db:
            result = await db.execute(
                select(RefreshToken).where(
                    and_(
                        RefreshToken.token_hash == JWTManager.hash_token(token),
                        RefreshToken.revoked.is_(False),
                    )
                )
            )
            record = result.scalar_one_or_none()
            user = await db.get(User, uuid.UUID(payload.sub))
            if record is None or user is None or not user.is_active:
                raise SessionExpiredError()
            record.revoked = True
            session = await self._issue_session(db, user)
            await db.commit()

        self._current = session
        await self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    async def set_session(
        self,
        access_token: str,
        refresh_token: Optional[str] = None,
    ) -> Optional[AuthSession]:
        """
        Restore a session from a previously issued access token.

        Invalid, expired or orphaned tokens resolve to no session. Listeners
        receive INITIAL_SESSION either way.
        """
        session: Optional[AuthSession] = None
        try:
            payload = self.jwt_manager.verify_access_token(access_token)
        except TokenExpired:
            logger.info("Rejected expired access token")
            payload = None

        if payload is not None:
            async with store_session(self._session_maker, "users") as db:
                user = await db.get(User, uuid.UUID(payload.sub))
            if user is not None and user.is_active:
                session = AuthSession(
                    access_token=access_token,
                    refresh_token=refresh_token,
                    expires_at=payload.exp,
                    user=AuthUser(id=user.id, email=user.email),
                )

        self._current = session
        await self._emit(AuthEvent.INITIAL_SESSION, session)
        return session

    async def get_session(self) -> Optional[AuthSession]:
        """Current session; an expired one is dropped and SIGNED_OUT is emitted."""
        if self._current is not None and self._current.expired:
            self._current = None
            await self._emit(AuthEvent.SIGNED_OUT, None)
        return self._current
