from formulacardz.db.database import (
    create_session_factory,
    create_storage_engine,
    drop_db,
    init_db,
)
from formulacardz.db.operations import delete_entries, read_entries, upsert_entries
from formulacardz.db.storage import LocalStorage, StorageWrite

__all__ = [
    "LocalStorage",
    "StorageWrite",
    "create_session_factory",
    "create_storage_engine",
    "delete_entries",
    "drop_db",
    "init_db",
    "read_entries",
    "upsert_entries",
]
