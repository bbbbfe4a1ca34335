"""
Composition root.

Builds the client, storage and stores once and hands them to call sites.
The presentation layer owns one FormulaCardzCore for the life of the
process:

    core = FormulaCardzCore()
    session = await core.init()        # restores a stored session, if valid
    ...
    await core.dispose()

or, equivalently, `async with FormulaCardzCore() as core: ...`.
"""

import logging
from datetime import timedelta

import httpx

from formulacardz.client.formula_api import FormulaCardzClient
from formulacardz.config import Settings, settings
from formulacardz.db.storage import LocalStorage
from formulacardz.models.session import Session
from formulacardz.services.account import AccountService
from formulacardz.services.catalog import CatalogService
from formulacardz.services.ownership_store import OwnershipStore
from formulacardz.services.session_store import Clock, SessionStore, utc_now

logger = logging.getLogger(__name__)


class FormulaCardzCore:
    """Explicitly constructed service object replacing ambient global state."""

    def __init__(
        self,
        config: Settings | None = None,
        storage: LocalStorage | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.config = config or settings
        self.storage = storage or LocalStorage.from_url(
            self.config.storage_url, echo=self.config.debug
        )
        self.client = FormulaCardzClient(
            self.config.api_base_url,
            token_provider=lambda: self.sessions.token,
            timeout=self.config.request_timeout,
            transport=transport,
        )
        self.sessions = SessionStore(
            self.client,
            self.storage,
            clock=clock,
            default_expiry=timedelta(hours=self.config.token_expiry_hours),
            remember_me_expiry=timedelta(hours=self.config.remember_me_expiry_hours),
        )
        self.ownership = OwnershipStore(self.client, self.sessions)
        self.account = AccountService(self.client, self.sessions)
        self.catalog = CatalogService(self.client)

    async def init(self) -> Session | None:
        """Prepare storage and restore the stored session."""
        await self.storage.init()
        session = await self.sessions.restore()
        logger.info("%s core ready (signed_in=%s)", self.config.app_name, session is not None)
        return session

    async def logout(self) -> None:
        """Sign out and drop the signed-in user's records."""
        await self.sessions.logout()
        self.ownership.clear()

    async def dispose(self) -> None:
        await self.client.aclose()
        await self.storage.dispose()

    async def __aenter__(self) -> "FormulaCardzCore":
        await self.init()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.dispose()
