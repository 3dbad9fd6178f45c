# -*- coding: utf-8 -*-
"""SQL-backed storage for calendar events.

Every public method runs in its own short session so individual writes are
atomic. Nothing here spans more than one statement.
"""
from __future__ import annotations

import logging
import typing as t

from sqlalchemy import create_engine, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base, Event, new_event_id, to_utc, utcnow


logger = logging.getLogger(__name__)

# Columns a caller may change after creation
UPDATABLE_FIELDS = frozenset({"title", "description", "start", "end", "color"})


def create_db_engine(database_url: str) -> Engine:
    """Create an engine, with the SQLite settings a threaded web server needs."""
    if database_url.startswith("sqlite"):
        kwargs: dict[str, t.Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each session sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url)


class EventStore:
    """Create, read, update and soft-delete calendar events."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str, init_schema: bool = True) -> "EventStore":
        store = cls(create_db_engine(database_url))
        if init_schema:
            store.init_schema()
        return store

    def init_schema(self) -> None:
        """Create the events table if it does not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.info("Event store ready (%s), %d active event(s)", self.engine.url, self.count())

    def list_events(self) -> list[Event]:
        """Return all events that are not soft-deleted, in storage order."""
        with self._session_factory() as session:
            stmt = select(Event).where(Event.deleted_at.is_(None))
            return list(session.scalars(stmt))

    def get_event(self, event_id: str) -> t.Optional[Event]:
        with self._session_factory() as session:
            stmt = select(Event).where(Event.id == event_id, Event.deleted_at.is_(None))
            return session.scalars(stmt).first()

    def insert(self, event: Event) -> Event:
        """Persist a new event, assigning an id if it has none."""
        if not event.id:
            event.id = new_event_id()
        now = utcnow()
        event.created_at = event.created_at or now
        event.updated_at = event.updated_at or now
        with self._session_factory() as session:
            with session.begin():
                session.add(event)
        logger.debug("Inserted event %s", event.id)
        return event

    def update_fields(self, event_id: str, fields: dict[str, t.Any]) -> int:
        """Update the given columns of one event.

        :param event_id: Identifier of the event to change.
        :param fields: Mapping of column name to new value.
        :return: Number of rows affected; 0 when the event does not exist.
        :raises ValueError: If a field is not updatable.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        values = dict(fields)
        for key in ("start", "end"):
            if values.get(key) is not None:
                values[key] = to_utc(values[key])
        values["updated_at"] = utcnow()

        stmt = (
            update(Event)
            .where(Event.id == event_id, Event.deleted_at.is_(None))
            .values(**values)
        )
        with self._session_factory() as session:
            with session.begin():
                rowcount = session.execute(stmt).rowcount
        return rowcount

    def soft_delete(self, event_id: str) -> int:
        """Mark an event deleted. Returns the number of rows affected."""
        now = utcnow()
        stmt = (
            update(Event)
            .where(Event.id == event_id, Event.deleted_at.is_(None))
            .values(deleted_at=now, updated_at=now)
        )
        with self._session_factory() as session:
            with session.begin():
                rowcount = session.execute(stmt).rowcount
        return rowcount

    def count(self) -> int:
        with self._session_factory() as session:
            stmt = select(func.count()).select_from(Event).where(Event.deleted_at.is_(None))
            return session.scalar(stmt) or 0
