# -*- coding: utf-8 -*-
"""Render the current calendar into a compact digest for the model."""
from __future__ import annotations

import logging
import typing as t
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.exc import SQLAlchemyError

from calendar_assistant.errors import ScheduleReadError
from calendar_store.store import EventStore


logger = logging.getLogger(__name__)

SCHEDULE_HEADER = "Here are the current events:"


@dataclass
class ScheduleEntry:
    """An event reduced to what the model needs to see."""
    title: str
    description: str
    start: datetime
    end: datetime
    event_id: str = ""


def resolve_timezone(label: t.Optional[str]) -> tzinfo:
    """Map a caller's timezone label to a tzinfo, falling back to UTC.

    Accepts anything the tz database knows, e.g. ``America/New_York`` or
    ``EST``. Unknown or empty labels render in UTC.
    """
    if not label or not label.strip():
        return timezone.utc
    try:
        return ZoneInfo(label.strip())
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def _clock(value: datetime) -> str:
    # 3:04 PM
    return value.strftime("%I:%M %p").lstrip("0")


def format_start(value: datetime) -> str:
    """Format like ``Mon Jan 2 3:04 PM``."""
    return f"{value:%a %b} {value.day} {_clock(value)}"


def format_end(value: datetime) -> str:
    """Format like ``3:04 PM``."""
    return _clock(value)


def render_schedule(
        entries: t.Iterable[ScheduleEntry],
        tz: t.Optional[tzinfo] = None,
        include_ids: bool = False,
) -> str:
    """Render schedule entries as a header line plus one line per event.

    :param entries: Events in the order they should appear.
    :param tz: Zone to render times in (UTC if omitted).
    :param include_ids: Append ``[id: ...]`` to each line.
    :return: The digest, newline terminated.
    """
    tz = tz or timezone.utc
    lines = [SCHEDULE_HEADER]
    for entry in entries:
        line = (
            f"- {entry.title}: {format_start(entry.start.astimezone(tz))} "
            f"to {format_end(entry.end.astimezone(tz))} ({entry.description})"
        )
        if include_ids and entry.event_id:
            line += f" [id: {entry.event_id}]"
        lines.append(line)
    return "\n".join(lines) + "\n"


class ScheduleRenderer:
    """Reads the event store and renders it. Never cached."""

    def __init__(self, store: EventStore, include_ids: bool = False) -> None:
        self.store = store
        self.include_ids = include_ids

    def entries(self) -> list[ScheduleEntry]:
        try:
            events = self.store.list_events()
        except SQLAlchemyError as e:
            raise ScheduleReadError(f"failed to fetch events: {e}") from e
        return [
            ScheduleEntry(
                title=event.title,
                description=event.description,
                start=event.start,
                end=event.end,
                event_id=event.id,
            )
            for event in events
        ]

    def render(self, timezone_label: t.Optional[str] = None) -> str:
        entries = self.entries()
        logger.debug("Rendering schedule digest with %d event(s)", len(entries))
        return render_schedule(entries, tz=resolve_timezone(timezone_label), include_ids=self.include_ids)
