# -*- coding: utf-8 -*-
"""One chat turn, end to end.

schedule read -> prompt -> provider -> interpreter -> action executor.

The schedule is read once before the model call and the action (if any) is
applied after the model answers. Nothing locks the store in between, so an
edit made meanwhile by another request is not detected.
"""
from __future__ import annotations

import logging
import typing as t
from dataclasses import dataclass
from datetime import date

from calendar_assistant.executor import DEFAULT_EVENT_COLOR, ActionExecutor
from calendar_assistant.prompt import compose_prompt
from calendar_assistant.providers import Provider
from calendar_assistant.schedule import ScheduleRenderer
from calendar_store.store import EventStore
from services.shared.models import ActionResult, AssistantReply


logger = logging.getLogger(__name__)


@dataclass
class ChatTurn:
    """The outcome of one chat turn."""
    reply: AssistantReply
    result: t.Optional[ActionResult] = None


class ChatBridge:
    """Connects a provider to the event store for chat turns."""

    def __init__(
            self,
            provider: Provider,
            store: EventStore,
            default_color: t.Optional[str] = None,
            include_ids: bool = True,
            today: t.Optional[t.Callable[[], date]] = None,
    ) -> None:
        self.provider = provider
        self.store = store
        self.renderer = ScheduleRenderer(store, include_ids=include_ids)
        self.executor = ActionExecutor(store, default_color=default_color or DEFAULT_EVENT_COLOR)
        self._today = today or date.today

    def query(self, message: str, timezone: t.Optional[str] = None) -> ChatTurn:
        """Answer one user message, applying the action the model asks for.

        :raises BridgeError: Schedule read, provider or action failure. No
            action is applied when the provider fails.
        """
        schedule = self.renderer.render(timezone)
        prompt = compose_prompt(schedule, message, timezone=timezone, today=self._today())

        reply = self.provider.query(prompt)

        if reply.action is None:
            logger.info("No calendar action in reply")
            return ChatTurn(reply=reply)

        result = self.executor.execute(reply.action)
        return ChatTurn(reply=reply, result=result)
