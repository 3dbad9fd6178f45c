"""Shared fixtures: an in-memory event store and a scripted provider."""
import typing as t
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from calendar_assistant.config import Settings
from calendar_assistant.prompt import ComposedPrompt
from calendar_assistant.providers import Provider
from calendar_store.models import Event
from calendar_store.store import EventStore
from services.calendar_service.app import create_app


class ScriptedProvider(Provider):
    """Provider that replays canned model output instead of calling a model."""

    name = "scripted"

    def __init__(self) -> None:
        self.responses: list[str] = []
        self.error: t.Optional[Exception] = None
        self.prompts: list[ComposedPrompt] = []

    def generate(self, prompt: ComposedPrompt) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


@pytest.fixture
def store() -> EventStore:
    """A fresh in-memory database per test."""
    return EventStore.from_url("sqlite://")


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def make_event(store: EventStore) -> t.Callable[..., Event]:
    """Insert an event with sensible defaults and return it."""
    def _make_event(
            title: str = "Standup",
            description: str = "Daily sync",
            start: datetime = datetime(2025, 1, 2, 15, 4, tzinfo=timezone.utc),
            end: datetime = datetime(2025, 1, 2, 16, 4, tzinfo=timezone.utc),
            color: str = "var(--tokyo-blue)",
    ) -> Event:
        return store.insert(Event(title=title, description=description, start=start, end=end, color=color))

    return _make_event


@pytest.fixture
def client(store: EventStore, provider: ScriptedProvider) -> t.Iterator[TestClient]:
    """HTTP client for an app wired to the test store and scripted provider."""
    app = create_app(settings=Settings(database_url="sqlite://"), store=store, provider=provider)
    with TestClient(app) as test_client:
        yield test_client
