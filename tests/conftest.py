"""
Pytest fixtures for portfolio tests.

Every test gets its own SQLite file and change feed; store clients built from
the same fixtures share both, like browser sessions against one backend.
"""

import os
import tempfile
from typing import AsyncGenerator, Callable

# Settings are read at import time; point them at throwaway state first
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp.name}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.config import get_settings

get_settings.cache_clear()

from portfolio.database import build_engine, build_session_maker, init_db
from portfolio.kernel.identity.password import PasswordHasher
from portfolio.kernel.store import ChangeFeed, StoreClient
from tests.helpers import OWNER_EMAIL, PASSWORD, VISITOR_EMAIL, promote


def pytest_sessionfinish(session, exitstatus):
    if os.path.exists(_tmp.name):
        os.unlink(_tmp.name)


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    """Minimum bcrypt cost keeps sign-ups fast."""
    monkeypatch.setattr(PasswordHasher, "rounds", 4)


@pytest_asyncio.fixture
async def session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await init_db(engine)
    yield build_session_maker(engine)
    await engine.dispose()


@pytest.fixture
def change_feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture
def make_store(session_maker, change_feed) -> Callable[[], StoreClient]:
    def factory() -> StoreClient:
        return StoreClient(session_maker, changes=change_feed)

    return factory


@pytest_asyncio.fixture
async def admin_store(make_store, session_maker) -> StoreClient:
    store = make_store()
    session = await store.auth.sign_up(OWNER_EMAIL, PASSWORD)
    await promote(session_maker, session.user.id)
    return store


@pytest_asyncio.fixture
async def visitor_store(make_store) -> StoreClient:
    """Signed in, not an administrator."""
    store = make_store()
    await store.auth.sign_up(VISITOR_EMAIL, PASSWORD)
    return store


@pytest.fixture
def anon_store(make_store) -> StoreClient:
    return make_store()


@pytest_asyncio.fixture
async def article(admin_store) -> dict:
    """A published article row."""
    return await admin_store.table("articles").insert({"title": "Hello", "excerpt": "First post"})
