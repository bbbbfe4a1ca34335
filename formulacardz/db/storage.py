"""
Local durable storage.

Writes are applied as one transaction, so a group of entries (the session
token, profile, timestamp and remember-me flag) is either fully written or
not written at all.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from formulacardz.db.database import create_session_factory, create_storage_engine, init_db
from formulacardz.db.operations import delete_entries, read_entries, upsert_entries

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StorageWrite:
    """One pending write. A value of None removes the key."""

    key: str
    value: str | None


class LocalStorage:
    """Key/value storage backed by an async SQLAlchemy engine."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = create_session_factory(engine)

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "LocalStorage":
        return cls(create_storage_engine(url, echo=echo))

    async def init(self) -> None:
        """Create the storage tables if they do not exist."""
        await init_db(self._engine)

    async def dispose(self) -> None:
        await self._engine.dispose()

    async def get_many(self, keys: Iterable[str]) -> dict[str, str]:
        """Read several entries; missing keys are omitted."""
        async with self._session_factory() as session:
            return await read_entries(session, keys)

    async def apply(self, writes: Sequence[StorageWrite]) -> None:
        """
        Apply all writes in a single transaction.

        Raises:
            SQLAlchemyError: If the transaction fails; nothing is written
        """
        upserts = {w.key: w.value for w in writes if w.value is not None}
        removals = [w.key for w in writes if w.value is None]

        async with self._session_factory() as session:
            try:
                async with session.begin():
                    await upsert_entries(session, upserts)
                    await delete_entries(session, removals)
            except SQLAlchemyError:
                logger.error("Storage transaction failed for keys: %s", [w.key for w in writes])
                raise
