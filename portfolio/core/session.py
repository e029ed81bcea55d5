"""
Session manager: the current identity and its administrator flag.

The identity is re-derived from the profile row on every auth-state change
reported by the store; nothing is polled. Construct one per client, start it,
and close it when done:

    async with SessionManager(store.auth, store.table("profiles")) as sessions:
        result = await sessions.sign_in(email, password)
"""

import asyncio
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional

from portfolio.core.results import (
    AuthFailureReason,
    ErrorKind,
    Failure,
    Ok,
    Result,
    from_auth_error,
)
from portfolio.core.validators import validate_auth
from portfolio.kernel.store import AuthApiError, AuthClient, AuthEvent, AuthSession, StoreError, TableClient
from portfolio.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: uuid.UUID
    email: str
    is_admin: bool = False


IdentityListener = Callable[[Optional[Identity]], None]


class SessionManager:
    """Owns the identity for one store client."""

    def __init__(self, auth: AuthClient, profiles: TableClient):
        self._auth = auth
        self._profiles = profiles
        self._identity: Optional[Identity] = None
        self._resolved = asyncio.Event()
        self._generation = 0
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._listeners: List[IdentityListener] = []

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def resolved(self) -> bool:
        """False until the initial session has been resolved."""
        return self._resolved.is_set()

    @property
    def session(self) -> Optional[AuthSession]:
        return self._auth.current_session

    async def start(self) -> Optional[Identity]:
        """Subscribe to auth changes and resolve the initial session."""
        if self._unsubscribe is None:
            self._unsubscribe = self._auth.on_auth_state_change(self._on_auth_event)
        await self._derive(await self._auth.get_session())
        return self._identity

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()

    async def __aenter__(self) -> "SessionManager":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    async def wait_resolved(self) -> Optional[Identity]:
        await self._resolved.wait()
        return self._identity

    def on_change(self, listener: IdentityListener) -> Callable[[], None]:
        """Call ``listener`` with the new identity after each change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _on_auth_event(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        logger.debug("Deriving identity after %s", event.value)
        await self._derive(session)

    async def _derive(self, session: Optional[AuthSession]) -> None:
        self._generation += 1
        generation = self._generation

        identity: Optional[Identity] = None
        if session is not None:
            is_admin = False
            try:
                profile = await self._profiles.get(session.user.id)
                is_admin = bool(profile and profile.get("is_admin"))
            except StoreError as exc:
                # Without a profile the identity is treated as non-admin
                logger.warning("Profile lookup failed: %s", exc.code)
            identity = Identity(
                user_id=session.user.id,
                email=session.user.email,
                is_admin=is_admin,
            )

        if generation != self._generation:
            logger.debug("Discarding stale identity derivation %d", generation)
            return

        changed = identity != self._identity or not self._resolved.is_set()
        self._identity = identity
        self._resolved.set()
        if changed:
            for listener in list(self._listeners):
                listener(identity)

    async def sign_in(self, email: str, password: str) -> Result[Identity]:
        return await self._authenticate(self._auth.sign_in, email, password)

    async def sign_up(self, email: str, password: str) -> Result[Identity]:
        return await self._authenticate(self._auth.sign_up, email, password)

    async def _authenticate(self, action, email: str, password: str) -> Result[Identity]:
        checked = validate_auth({"email": email, "password": password})
        if not checked.ok:
            return Failure(
                kind=ErrorKind.VALIDATION,
                message=checked.message,
                errors=checked.errors,
                reason=AuthFailureReason.VALIDATION_FAILURE.value,
            )
        credentials = checked.value
        try:
            await action(credentials.email, credentials.password)
        except (AuthApiError, StoreError) as exc:
            logger.warning("Authentication failed: %s", exc.code)
            return from_auth_error(exc)

        if self._identity is None:
            return Failure(kind=ErrorKind.AUTH, message="Session was not established")
        return Ok(self._identity)

    async def sign_out(self, refresh_token: Optional[str] = None) -> Result[None]:
        try:
            await self._auth.sign_out(refresh_token)
        except StoreError as exc:
            logger.warning("Sign-out could not revoke the session: %s", exc.code)
            return from_auth_error(exc)
        return Ok(None)

    async def refresh(self, refresh_token: Optional[str] = None) -> Result[Identity]:
        """Rotate the session's tokens."""
        try:
            await self._auth.refresh_session(refresh_token)
        except (AuthApiError, StoreError) as exc:
            logger.warning("Session refresh failed: %s", exc.code)
            return from_auth_error(exc)
        if self._identity is None:
            return Failure(kind=ErrorKind.AUTH, message="Session was not established")
        return Ok(self._identity)
