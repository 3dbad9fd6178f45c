# -*- coding: utf-8 -*-
"""Apply calendar actions from model replies to the event store.

One action per call. Each kind has its own handler; a kind without a handler
is rejected rather than ignored.
"""
from __future__ import annotations

import logging
import typing as t

from sqlalchemy.exc import SQLAlchemyError

from calendar_assistant.config import DEFAULT_EVENT_COLOR
from calendar_assistant.errors import InvalidActionError, StoreError, UnknownActionError
from calendar_store.models import Event, new_event_id, to_utc
from calendar_store.store import EventStore
from services.shared.models import ActionKind, ActionOutcome, ActionResult, CalendarAction


logger = logging.getLogger(__name__)


class ActionExecutor:
    """Applies a CalendarAction against an EventStore."""

    def __init__(self, store: EventStore, default_color: str = DEFAULT_EVENT_COLOR) -> None:
        self.store = store
        self.default_color = default_color
        self._handlers: dict[ActionKind, t.Callable[[CalendarAction], ActionResult]] = {
            ActionKind.RESPONSE: self._respond,
            ActionKind.CREATE: self._create,
            ActionKind.UPDATE: self._update,
            ActionKind.DELETE: self._delete,
        }

    def execute(self, action: CalendarAction) -> ActionResult:
        """Apply one action.

        :return: What happened. ``NOT_FOUND`` means the target event did not
            exist and nothing was written.
        :raises UnknownActionError: The kind has no handler.
        :raises InvalidActionError: The action lacks data its kind needs.
        :raises StoreError: The store rejected the write.
        """
        handler = self._handlers.get(action.kind)
        if handler is None:
            logger.error("Rejecting action of unknown type %r", action.kind)
            raise UnknownActionError(action.kind)

        logger.info("Executing calendar action: %s", action.model_dump(exclude_none=True))
        try:
            result = handler(action)
        except SQLAlchemyError as e:
            logger.error("Store error while applying %s action: %s", action.kind.value, e)
            raise StoreError(f"failed to {action.kind.value} event: {e}") from e

        if result.outcome is ActionOutcome.NOT_FOUND:
            logger.warning("No event %s to %s", action.event_id, action.kind.value)
        return result

    def _respond(self, action: CalendarAction) -> ActionResult:
        return ActionResult(outcome=ActionOutcome.NOOP)

    def _create(self, action: CalendarAction) -> ActionResult:
        if action.start is None or action.end is None:
            raise InvalidActionError("create action requires both start and end")

        event = Event(
            id=new_event_id(),
            title=action.title or "",
            description=action.description or "",
            start=to_utc(action.start),
            end=to_utc(action.end),
            color=self.default_color,
        )
        self.store.insert(event)
        logger.info("Created event %s (%s)", event.id, event.title)
        return ActionResult(outcome=ActionOutcome.CREATED, event_id=event.id, rows_affected=1)

    def _update(self, action: CalendarAction) -> ActionResult:
        event_id = self._require_target(action)
        fields: dict[str, t.Any] = {}
        for name in ("title", "description", "start", "end"):
            value = getattr(action, name)
            if value is not None:
                fields[name] = value
        rows = self.store.update_fields(event_id, fields)
        logger.info("Updated event %s, rows affected: %d", event_id, rows)
        return ActionResult(
            outcome=ActionOutcome.UPDATED if rows else ActionOutcome.NOT_FOUND,
            event_id=event_id,
            rows_affected=rows,
        )

    def _delete(self, action: CalendarAction) -> ActionResult:
        event_id = self._require_target(action)
        rows = self.store.soft_delete(event_id)
        logger.info("Deleted event %s, rows affected: %d", event_id, rows)
        return ActionResult(
            outcome=ActionOutcome.DELETED if rows else ActionOutcome.NOT_FOUND,
            event_id=event_id,
            rows_affected=rows,
        )

    @staticmethod
    def _require_target(action: CalendarAction) -> str:
        if not action.event_id:
            raise InvalidActionError(f"{action.kind.value} action requires an event_id")
        return action.event_id
