# -*- coding: utf-8 -*-
"""Compose the system instructions and user turn for one chat request."""
from __future__ import annotations

import typing as t
from dataclasses import dataclass
from datetime import date

from prompts import fill_template, load_prompt


SYSTEM_PROMPT_NAME = "calendar_assistant_system_prompt"
UNSPECIFIED_TIMEZONE = "unspecified"


@dataclass(frozen=True)
class ComposedPrompt:
    """The system context plus the user's raw utterance."""
    system: str
    user: str
    timezone: str = UNSPECIFIED_TIMEZONE


def normalize_timezone(timezone: t.Optional[str]) -> str:
    if timezone is None or not timezone.strip():
        return UNSPECIFIED_TIMEZONE
    return timezone.strip()


def compose_system_prompt(
        schedule: str,
        timezone: t.Optional[str] = None,
        today: t.Optional[date] = None,
) -> str:
    """Fill the assistant persona with the date, timezone and schedule digest.

    The digest is appended verbatim; large calendars make a large prompt.
    """
    today = today or date.today()
    return fill_template(
        load_prompt(SYSTEM_PROMPT_NAME),
        {
            "current_date": today.isoformat(),
            "timezone": normalize_timezone(timezone),
            "schedule": schedule,
        },
    )


def compose_prompt(
        schedule: str,
        message: str,
        timezone: t.Optional[str] = None,
        today: t.Optional[date] = None,
) -> ComposedPrompt:
    """Build the full prompt for one chat turn."""
    return ComposedPrompt(
        system=compose_system_prompt(schedule, timezone=timezone, today=today),
        user=message,
        timezone=normalize_timezone(timezone),
    )
