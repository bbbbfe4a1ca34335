from collections.abc import AsyncGenerator, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import respx

from formulacardz.config import Settings
from formulacardz.core import FormulaCardzCore
from formulacardz.db.storage import LocalStorage
from formulacardz.services.ownership_store import OwnershipStore
from formulacardz.services.session_store import SessionStore

BASE_URL = "https://api.test"


class FakeClock:
    """Settable wall clock for expiry tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def api() -> Iterator[respx.MockRouter]:
    """Mocked Formula Cardz service."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture
async def storage(tmp_path: Path) -> AsyncGenerator[LocalStorage, None]:
    """File-backed storage so tests can reopen it like a restarted app."""
    store = LocalStorage.from_url(f"sqlite+aiosqlite:///{tmp_path / 'formula_cardz.db'}")
    await store.init()
    yield store
    await store.dispose()


@pytest.fixture
async def core(storage: LocalStorage, clock: FakeClock) -> AsyncGenerator[FormulaCardzCore, None]:
    config = Settings(api_base_url=BASE_URL)
    core = FormulaCardzCore(config=config, storage=storage, clock=clock)
    yield core
    await core.client.aclose()


@pytest.fixture
def sessions(core: FormulaCardzCore) -> SessionStore:
    return core.sessions


@pytest.fixture
def ownership(core: FormulaCardzCore) -> OwnershipStore:
    return core.ownership


@pytest.fixture
def auth_payload() -> dict:
    """Login/register response from the service."""
    return {
        "id": "user-123",
        "email": "lewis@example.com",
        "username": "lewis44",
        "token": "tok-abc",
        "profileImageUrl": "",
        "favoriteDrivers": ["Lewis Hamilton"],
        "favoriteConstructors": ["Ferrari"],
        "hasPremium": False,
    }


@pytest.fixture
async def signed_in(sessions: SessionStore, api: respx.MockRouter, auth_payload: dict):
    """A session store with user-123 logged in."""
    api.post("/v1/auth/login").respond(200, json=auth_payload)
    return await sessions.login("lewis@example.com", "secret123")
