"""
Database CRUD operations.

Async functions reading and writing persisted key/value entries. Callers
own the transaction; nothing here commits.
"""

from collections.abc import Iterable, Mapping

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from formulacardz.models.db import StoredEntryDB


async def read_entries(session: AsyncSession, keys: Iterable[str]) -> dict[str, str]:
    """
    Read the entries for the given keys.

    Keys with no stored entry are absent from the result.
    """
    result = await session.execute(select(StoredEntryDB).where(StoredEntryDB.key.in_(list(keys))))
    return {entry.key: entry.value for entry in result.scalars()}


async def upsert_entries(session: AsyncSession, entries: Mapping[str, str]) -> None:
    """Insert or overwrite entries."""
    if not entries:
        return

    result = await session.execute(
        select(StoredEntryDB).where(StoredEntryDB.key.in_(list(entries)))
    )
    existing = {entry.key: entry for entry in result.scalars()}

    for key, value in entries.items():
        if key in existing:
            existing[key].value = value
        else:
            session.add(StoredEntryDB(key=key, value=value))

    await session.flush()


async def delete_entries(session: AsyncSession, keys: Iterable[str]) -> int:
    """
    Delete entries by key.

    Returns the number of entries removed.
    """
    key_list = list(keys)
    if not key_list:
        return 0

    result = await session.execute(delete(StoredEntryDB).where(StoredEntryDB.key.in_(key_list)))
    await session.flush()
    return result.rowcount or 0
