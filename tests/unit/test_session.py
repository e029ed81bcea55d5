"""Unit tests for SessionManager, against a fake auth source and the real store."""

import asyncio

import pytest

from portfolio.core.results import AuthFailureReason, ErrorKind
from portfolio.core.session import Identity, SessionManager
from portfolio.kernel.store import AuthEvent, StoreUnavailableError
from tests.helpers import PASSWORD, FakeAuth, FakeProfiles, make_session, promote


@pytest.mark.asyncio
async def test_start_without_session_resolves_unauthenticated():
    sessions = SessionManager(FakeAuth(), FakeProfiles())
    assert not sessions.resolved
    assert await sessions.start() is None
    assert sessions.resolved
    assert sessions.identity is None


@pytest.mark.asyncio
async def test_start_with_existing_session_derives_admin_flag():
    session = make_session()
    sessions = SessionManager(FakeAuth(session), FakeProfiles(admins={session.user.id}))
    identity = await sessions.start()
    assert identity == Identity(session.user.id, "owner@example.com", is_admin=True)


@pytest.mark.asyncio
async def test_identity_follows_auth_events():
    auth = FakeAuth()
    seen = []
    async with SessionManager(auth, FakeProfiles()) as sessions:
        sessions.on_change(seen.append)
        await auth.emit(AuthEvent.SIGNED_IN, make_session("a@example.com"))
        assert sessions.identity.email == "a@example.com"
        await auth.emit(AuthEvent.SIGNED_OUT, None)
        assert sessions.identity is None
    assert [i.email if i else None for i in seen] == ["a@example.com", None]
    assert auth.listeners == []


@pytest.mark.asyncio
async def test_stale_derivation_is_discarded():
    auth = FakeAuth()
    profiles = FakeProfiles()
    sessions = SessionManager(auth, profiles)
    await sessions.start()

    slow = make_session("slow@example.com")
    profiles.gates[slow.user.id] = asyncio.Event()
    pending = asyncio.create_task(auth.emit(AuthEvent.SIGNED_IN, slow))
    await asyncio.sleep(0)

    await auth.emit(AuthEvent.SIGNED_OUT, None)
    profiles.gates[slow.user.id].set()
    await pending

    assert sessions.identity is None


@pytest.mark.asyncio
async def test_invalid_input_never_reaches_auth():
    auth = FakeAuth()
    sessions = SessionManager(auth, FakeProfiles())
    result = await sessions.sign_in("not-an-email", "123")
    assert result.kind == ErrorKind.VALIDATION
    assert result.reason == AuthFailureReason.VALIDATION_FAILURE.value
    assert [e.field for e in result.errors] == ["email", "password"]
    assert auth.calls == []


@pytest.mark.asyncio
async def test_network_failure_is_typed():
    auth = FakeAuth()
    auth.error = StoreUnavailableError("connection refused")
    sessions = SessionManager(auth, FakeProfiles())
    await sessions.start()
    result = await sessions.sign_in("owner@example.com", PASSWORD)
    assert result.kind == ErrorKind.STORE
    assert result.reason == AuthFailureReason.NETWORK_FAILURE.value
    assert sessions.identity is None


@pytest.mark.asyncio
async def test_sign_in_sign_out_against_store(make_store, session_maker):
    store = make_store()
    sessions = SessionManager(store.auth, store.table("profiles"))
    await sessions.start()

    signed_up = await sessions.sign_up("owner@example.com", PASSWORD)
    assert signed_up.ok
    assert signed_up.value.is_admin is False

    await promote(session_maker, signed_up.value.user_id)
    signed_in = await sessions.sign_in("owner@example.com", PASSWORD)
    assert signed_in.value.is_admin is True

    assert (await sessions.sign_out()).ok
    assert sessions.identity is None
    sessions.close()


@pytest.mark.asyncio
async def test_auth_failures_against_store(make_store):
    store = make_store()
    async with SessionManager(store.auth, store.table("profiles")) as sessions:
        await sessions.sign_up("owner@example.com", PASSWORD)

        again = await sessions.sign_up("owner@example.com", PASSWORD)
        assert again.kind == ErrorKind.AUTH
        assert again.reason == AuthFailureReason.ALREADY_REGISTERED.value

        wrong = await sessions.sign_in("owner@example.com", "wrong-password")
        assert wrong.kind == ErrorKind.AUTH
        assert wrong.reason == AuthFailureReason.INVALID_CREDENTIALS.value
