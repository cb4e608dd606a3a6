"""
SQLAlchemy ORM models for the SmartInhale database.

The event pipeline treats storage as a key-value blob store: each key
holds one whole JSON snapshot (the event list, the patient registry).
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def utc_now() -> datetime:
    """Return current UTC timestamp for database defaults."""
    return datetime.now(UTC)


class Blob(Base):
    """One whole-snapshot value stored under a key."""

    __tablename__ = "blobs"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (CheckConstraint("length(key) > 0", name="chk_blob_key"),)

    def __repr__(self) -> str:
        return f"<Blob(key={self.key}, updated_at={self.updated_at})>"
