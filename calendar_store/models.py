"""
Persistence models for the calendar event store.

Timestamps are stored as naive UTC in the database and handed back as
timezone-aware UTC datetimes.
"""
from __future__ import annotations

import typing as t
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_event_id() -> str:
    return str(uuid.uuid4())


class UTCDateTime(TypeDecorator):
    """DateTime column that always round-trips as aware UTC."""
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: t.Optional[datetime], dialect) -> t.Optional[datetime]:
        if value is None:
            return None
        return to_utc(value).replace(tzinfo=None)

    def process_result_value(self, value: t.Optional[datetime], dialect) -> t.Optional[datetime]:
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class Base(DeclarativeBase):
    pass


class Event(Base):
    """A scheduled calendar entry."""
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_event_id)
    title: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    start: Mapped[datetime] = mapped_column(UTCDateTime)
    end: Mapped[datetime] = mapped_column(UTCDateTime)
    color: Mapped[str] = mapped_column(String(64), default="")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)
    deleted_at: Mapped[t.Optional[datetime]] = mapped_column(UTCDateTime, nullable=True, index=True)

    def __repr__(self) -> str:
        return f"Event(id={self.id!r}, title={self.title!r}, start={self.start!r}, end={self.end!r})"
