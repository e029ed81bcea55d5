"""Shared test data and helpers."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Union

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.kernel.models import Profile
from portfolio.kernel.store import AuthEvent, AuthSession, AuthUser

OWNER_EMAIL = "owner@example.com"
VISITOR_EMAIL = "visitor@example.com"
PASSWORD = "secret123"


async def promote(session_maker: async_sessionmaker[AsyncSession], user_id: Union[uuid.UUID, str]) -> None:
    """Set the administrator flag, as scripts/promote_admin.py does. Accepts ids from JSON."""
    profile_id = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(user_id)
    async with session_maker() as session:
        await session.execute(update(Profile).where(Profile.id == profile_id).values(is_admin=True))
        await session.commit()


def project_form(**overrides) -> dict:
    form = {
        "title": "Portfolio",
        "description": "This site",
        "technologies": "React, TypeScript",
        "icon": "🌐",
        "demo_url": "",
        "repo_url": "https://github.com/example/portfolio",
        "sort_order": 0,
        "is_published": True,
    }
    form.update(overrides)
    return form


def article_form(**overrides) -> dict:
    form = {
        "title": "Async Python",
        "excerpt": "Notes on asyncio",
        "content": "Long body",
        "category": "Backend",
        "read_time": "7 min",
        "url": "",
        "sort_order": 0,
        "is_published": True,
    }
    form.update(overrides)
    return form


def make_session(email: str = OWNER_EMAIL) -> AuthSession:
    return AuthSession(
        access_token="token",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        user=AuthUser(id=uuid.uuid4(), email=email),
    )


class FakeAuth:
    """Stands in for the store's auth client."""

    def __init__(self, session=None):
        self.current_session = session
        self.listeners = []
        self.calls = []
        self.error = None

    def on_auth_state_change(self, listener):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    async def get_session(self):
        return self.current_session

    async def emit(self, event, session):
        self.current_session = session
        for listener in list(self.listeners):
            await listener(event, session)

    async def sign_in(self, email, password):
        self.calls.append(("sign_in", email))
        if self.error:
            raise self.error
        await self.emit(AuthEvent.SIGNED_IN, make_session(email))

    async def sign_up(self, email, password):
        self.calls.append(("sign_up", email))
        await self.emit(AuthEvent.SIGNED_IN, make_session(email))

    async def sign_out(self, refresh_token=None):
        self.calls.append(("sign_out", refresh_token))
        await self.emit(AuthEvent.SIGNED_OUT, None)


class FakeProfiles:
    """Profile table stand-in; lookups for ids in ``gates`` wait for the event."""

    def __init__(self, admins=()):
        self.admins = set(admins)
        self.gates = {}

    async def get(self, user_id):
        gate = self.gates.get(user_id)
        if gate is not None:
            await gate.wait()
        return {"id": user_id, "is_admin": user_id in self.admins}
