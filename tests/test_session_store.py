"""Tests for the session lifecycle: login, register, expiry, restore, logout."""

import json
from datetime import timedelta

import httpx
import pytest
import respx

from formulacardz.config import (
    REMEMBER_ME_KEY,
    SESSION_KEYS,
    TOKEN_KEY,
    TOKEN_TIMESTAMP_KEY,
    USER_KEY,
)
from formulacardz.db.storage import LocalStorage, StorageWrite
from formulacardz.models.failure import AuthError, FailureKind, StateError, ValidationError
from formulacardz.models.session import Session, UserProfile
from formulacardz.services.session_store import (
    SessionStore,
    is_expired_at,
    plan_clear,
    plan_persist,
    to_epoch_millis,
)
from tests.conftest import FakeClock


class TestLogin:
    async def test_login_persists_all_four_entries(
        self,
        sessions: SessionStore,
        storage: LocalStorage,
        api: respx.MockRouter,
        auth_payload: dict,
        clock: FakeClock,
    ) -> None:
        api.post("/v1/auth/login").respond(200, json=auth_payload)

        session = await sessions.login("lewis@example.com", "secret123", remember_me=True)

        entries = await storage.get_many(SESSION_KEYS)
        assert entries[TOKEN_KEY] == "tok-abc"
        assert json.loads(entries[USER_KEY])["id"] == "user-123"
        assert entries[TOKEN_TIMESTAMP_KEY] == str(to_epoch_millis(clock.now))
        assert entries[REMEMBER_ME_KEY] == "true"
        assert session.issued_at == clock.now
        assert sessions.current == session

    async def test_login_sends_credentials(
        self, sessions: SessionStore, api: respx.MockRouter, auth_payload: dict
    ) -> None:
        route = api.post("/v1/auth/login").respond(200, json=auth_payload)

        await sessions.login("  lewis@example.com ", "secret123")

        body = json.loads(route.calls.last.request.content)
        assert body == {"email": "lewis@example.com", "password": "secret123"}

    async def test_login_builds_profile(self, signed_in, sessions: SessionStore) -> None:
        profile = sessions.require().profile

        assert profile.username == "lewis44"
        assert profile.favorite_drivers == frozenset({"Lewis Hamilton"})
        assert profile.favorite_constructors == frozenset({"Ferrari"})
        assert profile.profile_image_url is None
        assert profile.has_premium is False

    async def test_rejected_credentials_raise_auth_error_verbatim(
        self, sessions: SessionStore, storage: LocalStorage, api: respx.MockRouter
    ) -> None:
        api.post("/v1/auth/login").respond(401, text="Invalid email or password")

        with pytest.raises(AuthError) as exc_info:
            await sessions.login("lewis@example.com", "wrongpass")

        assert exc_info.value.message == "Invalid email or password"
        assert exc_info.value.kind == FailureKind.AUTH_REJECTED
        assert sessions.current is None
        assert await storage.get_many(SESSION_KEYS) == {}

    async def test_network_failure_raises_auth_error(
        self, sessions: SessionStore, api: respx.MockRouter
    ) -> None:
        api.post("/v1/auth/login").mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(AuthError, match="connection refused"):
            await sessions.login("lewis@example.com", "secret123")

    async def test_failed_login_keeps_existing_session(
        self, signed_in, sessions: SessionStore, api: respx.MockRouter
    ) -> None:
        api.post("/v1/auth/login").respond(401, text="nope")

        with pytest.raises(AuthError):
            await sessions.login("other@example.com", "secret123")

        assert sessions.current == signed_in

    async def test_malformed_email_never_reaches_service(
        self, sessions: SessionStore, api: respx.MockRouter
    ) -> None:
        route = api.post("/v1/auth/login").respond(200, json={})

        with pytest.raises(ValidationError) as exc_info:
            await sessions.login("not-an-email", "secret123")

        assert exc_info.value.field == "email"
        assert not route.called

    async def test_short_password_rejected(
        self, sessions: SessionStore, api: respx.MockRouter
    ) -> None:
        with pytest.raises(ValidationError, match="at least 6 characters"):
            await sessions.login("lewis@example.com", "abc")

    async def test_login_replaces_current_session(
        self, signed_in, sessions: SessionStore, api: respx.MockRouter, auth_payload: dict
    ) -> None:
        api.post("/v1/auth/login").respond(200, json={**auth_payload, "token": "tok-new"})

        await sessions.login("lewis@example.com", "secret123")

        assert sessions.token == "tok-new"


class TestRegister:
    async def test_register_forces_one_day_policy(
        self,
        sessions: SessionStore,
        storage: LocalStorage,
        api: respx.MockRouter,
        auth_payload: dict,
    ) -> None:
        """New accounts start on the 24h policy even if remember-me was asked for."""
        api.post("/v1/auth/register").respond(200, json=auth_payload)

        session = await sessions.register(
            "lewis44", "lewis@example.com", "secret123", remember_me=True
        )

        assert session.remember_me is False
        entries = await storage.get_many(SESSION_KEYS)
        assert entries[REMEMBER_ME_KEY] == "false"

    async def test_register_sends_profile(
        self, sessions: SessionStore, api: respx.MockRouter, auth_payload: dict
    ) -> None:
        route = api.post("/v1/auth/register").respond(200, json=auth_payload)

        await sessions.register(
            "lewis44",
            "lewis@example.com",
            "secret123",
            favorite_drivers=["Lewis Hamilton", "Lewis Hamilton"],
        )

        body = json.loads(route.calls.last.request.content)
        assert body == {
            "username": "lewis44",
            "email": "lewis@example.com",
            "password": "secret123",
            "favoriteDrivers": ["Lewis Hamilton"],
            "favoriteConstructors": [],
        }

    async def test_register_requires_username(self, sessions: SessionStore) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await sessions.register("  ", "lewis@example.com", "secret123")

        assert exc_info.value.field == "username"

    async def test_register_rejects_mismatched_confirmation(self, sessions: SessionStore) -> None:
        with pytest.raises(ValidationError, match="do not match"):
            await sessions.register(
                "lewis44", "lewis@example.com", "secret123", confirm_password="secret124"
            )

    async def test_register_failure_is_auth_error(
        self, sessions: SessionStore, api: respx.MockRouter
    ) -> None:
        api.post("/v1/auth/register").respond(409, text="Email already registered")

        with pytest.raises(AuthError, match="Email already registered"):
            await sessions.register("lewis44", "lewis@example.com", "secret123")


class TestExpiry:
    @pytest.mark.parametrize(
        ("remember_me", "elapsed", "expired"),
        [
            (False, timedelta(hours=23, minutes=59), False),
            (False, timedelta(hours=24), False),
            (False, timedelta(hours=24, minutes=1), True),
            (True, timedelta(days=59), False),
            (True, timedelta(days=61), True),
        ],
    )
    async def test_policy_window(
        self,
        sessions: SessionStore,
        api: respx.MockRouter,
        auth_payload: dict,
        clock: FakeClock,
        remember_me: bool,
        elapsed: timedelta,
        expired: bool,
    ) -> None:
        api.post("/v1/auth/login").respond(200, json=auth_payload)
        await sessions.login("lewis@example.com", "secret123", remember_me=remember_me)

        clock.advance(elapsed)

        assert await sessions.is_expired() is expired

    async def test_missing_timestamp_is_expired(self, sessions: SessionStore) -> None:
        assert await sessions.is_expired() is True

    def test_unreadable_timestamp_is_expired(self, clock: FakeClock) -> None:
        entries = {TOKEN_TIMESTAMP_KEY: "yesterday", REMEMBER_ME_KEY: "false"}
        assert is_expired_at(entries, clock.now) is True

    def test_expiry_is_pure_function_of_entries(self, clock: FakeClock) -> None:
        issued = to_epoch_millis(clock.now - timedelta(hours=30))
        entries = {TOKEN_TIMESTAMP_KEY: str(issued)}

        assert is_expired_at(entries, clock.now) is True
        assert is_expired_at({**entries, REMEMBER_ME_KEY: "true"}, clock.now) is False


class TestRestore:
    async def test_restore_returns_persisted_session(
        self,
        signed_in,
        storage: LocalStorage,
        api: respx.MockRouter,
        clock: FakeClock,
        core,
    ) -> None:
        # A second store over the same storage stands in for a restarted app
        restarted = SessionStore(core.client, storage, clock=clock)

        session = await restarted.restore()

        assert session is not None
        assert session.user_id == "user-123"
        assert session.token == "tok-abc"
        assert session.profile == signed_in.profile
        assert to_epoch_millis(session.issued_at) == to_epoch_millis(signed_in.issued_at)

    async def test_restore_expired_session_clears_storage(
        self, signed_in, sessions: SessionStore, storage: LocalStorage, clock: FakeClock
    ) -> None:
        clock.advance(timedelta(hours=25))

        assert await sessions.restore() is None
        assert sessions.current is None
        assert await storage.get_many(SESSION_KEYS) == {}

    async def test_restore_with_nothing_stored(self, sessions: SessionStore) -> None:
        assert await sessions.restore() is None

    async def test_restore_with_corrupt_profile_clears_storage(
        self, sessions: SessionStore, storage: LocalStorage, clock: FakeClock
    ) -> None:
        await storage.apply(
            [
                StorageWrite(TOKEN_KEY, "tok-abc"),
                StorageWrite(USER_KEY, "{not json"),
                StorageWrite(TOKEN_TIMESTAMP_KEY, str(to_epoch_millis(clock.now))),
                StorageWrite(REMEMBER_ME_KEY, "false"),
            ]
        )

        assert await sessions.restore() is None
        assert await storage.get_many(SESSION_KEYS) == {}

    async def test_restore_without_token_clears_storage(
        self, signed_in, sessions: SessionStore, storage: LocalStorage
    ) -> None:
        await storage.apply([StorageWrite(TOKEN_KEY, None)])

        assert await sessions.restore() is None
        assert await storage.get_many(SESSION_KEYS) == {}


class TestRefresh:
    async def test_refresh_preserves_token_and_policy(
        self, signed_in, sessions: SessionStore, storage: LocalStorage
    ) -> None:
        server_profile = UserProfile(
            username="sir-lewis",
            email="lewis@example.com",
            favorite_drivers=frozenset({"Lewis Hamilton", "George Russell"}),
            favorite_constructors=frozenset({"Ferrari"}),
            has_premium=True,
            profile_image_url="https://img.test/lewis.png",
        )

        session = await sessions.refresh(server_profile)

        assert session.profile == server_profile
        assert session.token == signed_in.token
        assert session.issued_at == signed_in.issued_at
        stored = json.loads((await storage.get_many([USER_KEY]))[USER_KEY])
        assert stored["username"] == "sir-lewis"
        assert stored["hasPremium"] is True
        assert stored["favoriteDrivers"] == ["George Russell", "Lewis Hamilton"]

    async def test_refresh_without_session_is_state_error(self, sessions: SessionStore) -> None:
        with pytest.raises(StateError):
            await sessions.refresh(UserProfile(username="x", email="x@example.com"))


class TestLogout:
    async def test_logout_clears_memory_and_storage(
        self, signed_in, sessions: SessionStore, storage: LocalStorage
    ) -> None:
        await sessions.logout()

        assert sessions.current is None
        assert sessions.token is None
        assert await storage.get_many(SESSION_KEYS) == {}

    async def test_logout_when_anonymous_is_noop(self, sessions: SessionStore) -> None:
        await sessions.logout()
        assert sessions.current is None

    async def test_require_after_logout_raises(self, signed_in, sessions: SessionStore) -> None:
        await sessions.logout()

        with pytest.raises(AuthError) as exc_info:
            sessions.require()
        assert exc_info.value.kind == FailureKind.NOT_AUTHENTICATED


class TestCommitPlanning:
    def test_persist_plan_writes_four_entries(self, clock: FakeClock) -> None:
        session = Session(
            user_id="user-1",
            token="t",
            issued_at=clock.now,
            remember_me=False,
            profile=UserProfile(username="u", email="u@example.com"),
        )

        commit = plan_persist(session)

        assert commit.session is session
        assert [w.key for w in commit.writes] == list(SESSION_KEYS)
        assert all(w.value is not None for w in commit.writes)

    def test_clear_plan_removes_four_entries(self) -> None:
        commit = plan_clear()

        assert commit.session is None
        assert {w.key for w in commit.writes} == set(SESSION_KEYS)
        assert all(w.value is None for w in commit.writes)


class TestBearerToken:
    async def test_requests_carry_token_after_login(
        self, signed_in, core, api: respx.MockRouter
    ) -> None:
        route = api.get("/v1/ownership/user-123").respond(200, json=[])

        await core.ownership.load()

        assert route.calls.last.request.headers["Authorization"] == "Bearer tok-abc"

    async def test_requests_without_session_have_no_token(
        self, core, api: respx.MockRouter
    ) -> None:
        route = api.get("/v1/drops").respond(200, json=[])

        await core.catalog.upcoming_drops()

        assert "Authorization" not in route.calls.last.request.headers
