# -*- coding: utf-8 -*-
"""Turn raw model text into an AssistantReply.

Models do not always follow the output format: some prepend a
``<think>...</think>`` block, some wrap the JSON in a markdown fence, some
answer in plain prose. ``interpret_response`` never raises; whatever comes
back, the caller gets something to display.
"""
from __future__ import annotations

import json
import logging
import re
import typing as t

from pydantic import ValidationError

from services.shared.models import AssistantReply, CalendarAction


logger = logging.getLogger(__name__)

THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"
EMPTY_REPLY_MESSAGE = "Sorry, I didn't get a response. Could you try again?"

_CODE_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


def _brace_span(text: str) -> t.Optional[str]:
    """Slice from the first ``{`` to the last ``}``, if there is such a span."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def _candidates(text: str) -> t.Iterator[str]:
    """Yield the substrings worth trying to parse, most likely first."""
    if text.startswith(THINK_OPEN):
        # Reasoning may itself contain braces, so try what follows it first
        answer = text
        while answer.startswith(THINK_OPEN):
            _, closed, answer = answer.partition(THINK_CLOSE)
            if not closed:
                answer = ""
            answer = answer.strip()
        if answer:
            yield from _answer_candidates(answer)
        span = _brace_span(text)
        if span is not None:
            yield span
        return

    yield from _answer_candidates(text)


def _answer_candidates(text: str) -> t.Iterator[str]:
    yield text
    fenced = _CODE_FENCE.match(text)
    if fenced:
        yield fenced.group(1).strip()
    span = _brace_span(text)
    if span is not None and span != text:
        yield span


def _load_reply_object(candidate: str) -> t.Optional[dict[str, t.Any]]:
    try:
        data = json.loads(candidate)
    except (ValueError, RecursionError):
        # Deeply nested input exhausts the decoder
        return None
    if not isinstance(data, dict) or not isinstance(data.get("message"), str):
        return None
    return data


def parse_action(raw_action: t.Any) -> t.Optional[CalendarAction]:
    """Validate the ``action`` member of a reply; invalid actions are dropped."""
    if raw_action is None:
        return None
    if not isinstance(raw_action, dict):
        logger.warning("Dropping action that is not an object: %r", raw_action)
        return None
    try:
        return CalendarAction.model_validate(raw_action)
    except ValidationError as e:
        logger.warning("Dropping invalid action %r: %s", raw_action, e)
        return None


def strip_reasoning_markers(text: str) -> str:
    """Remove a leading ``<think>`` and a trailing ``</think>`` token."""
    if text.startswith(THINK_OPEN):
        text = text[len(THINK_OPEN):]
    if text.endswith(THINK_CLOSE):
        text = text[:-len(THINK_CLOSE)]
    return text.strip()


def interpret_response(raw: t.Optional[str]) -> AssistantReply:
    """Parse raw model output into a message and an optional action.

    :param raw: Full text produced by the model.
    :return: The reply. If no ``{"message": ..., "action": ...}`` object can be
        found, the cleaned text becomes the message and there is no action.
    """
    text = (raw or "").strip()

    for candidate in _candidates(text):
        data = _load_reply_object(candidate)
        if data is not None:
            return AssistantReply(message=data["message"], action=parse_action(data.get("action")))

    logger.info("Model output is not a JSON reply, using it as plain text")
    logger.debug("Unparsed model output: %s", text)
    message = strip_reasoning_markers(text)
    return AssistantReply(message=message or EMPTY_REPLY_MESSAGE)
