"""Declarative base and shared column mixins.

Timestamps are filled in Python (UTC) rather than by the database, so a
flush never leaves ``updated_at`` expired on an object an async session
still holds.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from core.utils import utc_now


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    return str(uuid4())


class TimestampMixin:
    """String UUID primary key plus created/updated timestamps."""

    id: Mapped[str] = mapped_column(primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )


class SoftDeleteMixin:
    """Hide a row instead of deleting it.

    Queries that should not see deleted rows filter on
    ``Model.is_deleted == False``; instance queries join their schedule
    and filter the same way, so a deleted schedule hides its history too.
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None, index=True
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    def soft_delete(self) -> None:
        self.is_deleted = True
        self.deleted_at = utc_now()

    def restore(self) -> None:
        self.is_deleted = False
        self.deleted_at = None


class BaseModel(SoftDeleteMixin, TimestampMixin, Base):
    """Abstract base for soft-deletable entities (schedules)."""

    __abstract__ = True


class RecordModel(TimestampMixin, Base):
    """Abstract base for rows that are never soft-deleted."""

    __abstract__ = True
