"""
Shared Pydantic models for REST API serialization.

This module holds the wire shapes used by the calendar service, its clients,
and the chat bridge: events, calendar actions parsed from model output, and
the chat request/response bodies.
"""
from __future__ import annotations

import typing as t
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActionKind(str, Enum):
    """The closed set of things a model reply may ask the calendar to do."""
    RESPONSE = "response"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ActionOutcome(str, Enum):
    """What applying a calendar action actually did."""
    NOOP = "noop"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    NOT_FOUND = "not_found"


class CalendarAction(BaseModel):
    """
    A structured instruction extracted from model output.

    On the wire the kind travels under the key ``type``:
    ``{"type": "create", "title": "...", "start": "...", "end": "..."}``.
    """
    model_config = ConfigDict(populate_by_name=True)

    kind: ActionKind = Field(alias="type")
    title: t.Optional[str] = None
    description: t.Optional[str] = None
    start: t.Optional[datetime] = None
    end: t.Optional[datetime] = None
    event_id: t.Optional[str] = None

    @field_validator("start", "end", "event_id", mode="before")
    @classmethod
    def _blank_is_missing(cls, value: t.Any) -> t.Any:
        # Models often send "" for fields that do not apply
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class AssistantReply(BaseModel):
    """Parsed result of one model invocation."""
    message: str
    action: t.Optional[CalendarAction] = None


class ActionResult(BaseModel):
    """Result of applying one calendar action to the event store."""
    outcome: ActionOutcome
    event_id: t.Optional[str] = None
    rows_affected: int = 0


# Event models
class EventBase(BaseModel):
    """Fields a client may set on an event."""
    title: str = ""
    description: str = ""
    start: datetime
    end: datetime
    color: str = ""


class CreateEventRequest(EventBase):
    """Request model for creating an event. The id is always server generated."""


class UpdateEventRequest(BaseModel):
    """Request model for a partial event update."""
    title: t.Optional[str] = None
    description: t.Optional[str] = None
    start: t.Optional[datetime] = None
    end: t.Optional[datetime] = None
    color: t.Optional[str] = None


class EventResponse(EventBase):
    """An event as returned by the API."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    created_at: t.Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: t.Optional[datetime] = Field(default=None, alias="updatedAt")


# Chat models
class ChatRequest(BaseModel):
    """Request model for one chat turn."""
    message: str
    timezone: t.Optional[str] = None


class ChatResponse(BaseModel):
    """Response model for one chat turn."""
    message: str
    action: t.Optional[CalendarAction] = None
    result: t.Optional[ActionResult] = None


class ErrorResponse(BaseModel):
    """Error body returned for any failed request."""
    error: str
