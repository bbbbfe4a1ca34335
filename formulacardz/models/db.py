"""
SQLAlchemy ORM models for local durable storage.

The client keeps only its session entries on disk; everything else is
fetched from the remote service.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class StoredEntryDB(Base):
    """
    A single persisted key/value entry.

    Session entries are written and removed together in one transaction.
    """

    __tablename__ = "stored_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<StoredEntryDB(key={self.key})>"
