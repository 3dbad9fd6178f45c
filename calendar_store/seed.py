# -*- coding: utf-8 -*-
"""Demo data for a fresh calendar database."""
from __future__ import annotations

import typing as t
from datetime import datetime, timedelta, timezone

from .models import Event
from .store import EventStore


# (day offset, start hour, duration in minutes, title, description, color)
DEMO_EVENTS: list[tuple[int, float, int, str, str, str]] = [
    (0, 10, 60, "Team standup", "Weekly sync with the product team", "var(--tokyo-red)"),
    (0, 12.5, 90, "Lunch with Sam", "Catch up at the noodle place", "var(--tokyo-blue)"),
    (0, 15, 60, "Inventory review", "Check the warehouse counts", "var(--tokyo-purple)"),
    (1, 14, 120, "Quarterly planning", "Roadmap for next quarter", "var(--tokyo-green)"),
    (2, 11, 60, "Dentist", "Regular check-up", "var(--tokyo-cyan)"),
]


def build_demo_events(today: t.Optional[datetime] = None) -> list[Event]:
    """Build the demo events relative to midnight of ``today`` (UTC)."""
    if today is None:
        today = datetime.now(timezone.utc)
    midnight = today.replace(hour=0, minute=0, second=0, microsecond=0)

    events = []
    for day_offset, start_hour, minutes, title, description, color in DEMO_EVENTS:
        start = midnight + timedelta(days=day_offset, hours=start_hour)
        events.append(
            Event(
                title=title,
                description=description,
                start=start,
                end=start + timedelta(minutes=minutes),
                color=color,
            )
        )
    return events


def seed_demo_events(store: EventStore, today: t.Optional[datetime] = None) -> list[Event]:
    """Insert the demo events and return them."""
    return [store.insert(event) for event in build_demo_events(today)]
