# -*- coding: utf-8 -*-
"""Exception hierarchy for the calendar chat bridge.

Parse problems in model output never show up here: the interpreter degrades
them to a plain-text reply. Everything below aborts the chat turn.
"""
from __future__ import annotations

import typing as t


class BridgeError(Exception):
    """Base class for failures that abort a chat turn."""


class ScheduleReadError(BridgeError):
    """The current schedule could not be read from the event store."""


class ProviderError(BridgeError):
    """A language-model provider could not produce a response."""


class ProviderConnectionError(ProviderError):
    """The provider endpoint could not be reached."""


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the configured timeout."""


class ProviderStatusError(ProviderError):
    """The provider answered with a non-success HTTP status."""

    def __init__(self, provider: str, status_code: int, body: str = "") -> None:
        self.provider = provider
        self.status_code = status_code
        self.body = body
        message = f"{provider} returned HTTP {status_code}"
        if body:
            message += f": {body[:200]}"
        super().__init__(message)


class ProviderResponseTooLargeError(ProviderError):
    """The streamed output grew past the configured buffer limit."""


class EmptyCompletionError(ProviderError):
    """The provider answered successfully but returned no completion."""


class ActionError(BridgeError):
    """A calendar action could not be applied."""


class UnknownActionError(ActionError):
    """The action kind is not one the executor knows how to apply."""

    def __init__(self, kind: t.Any) -> None:
        self.kind = kind
        super().__init__(f"unknown action type: {kind}")


class InvalidActionError(ActionError):
    """The action is missing data its kind requires."""


class StoreError(ActionError):
    """The event store rejected a write."""
