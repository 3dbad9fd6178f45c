# -*- coding: utf-8 -*-
from calendar_assistant.bridge import ChatBridge, ChatTurn
from calendar_assistant.config import Settings, configure_logging
from calendar_assistant.executor import ActionExecutor
from calendar_assistant.interpreter import interpret_response
from calendar_assistant.prompt import ComposedPrompt, compose_prompt
from calendar_assistant.providers import OllamaProvider, OpenAIProvider, Provider, build_provider
from calendar_assistant.schedule import ScheduleRenderer, render_schedule

__all__ = [
    "ActionExecutor",
    "ChatBridge",
    "ChatTurn",
    "ComposedPrompt",
    "OllamaProvider",
    "OpenAIProvider",
    "Provider",
    "ScheduleRenderer",
    "Settings",
    "build_provider",
    "compose_prompt",
    "configure_logging",
    "interpret_response",
    "render_schedule",
]
