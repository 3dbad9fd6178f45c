"""End-to-end tests for the calendar service HTTP API with a scripted model."""
import json
from datetime import datetime, timezone

from calendar_assistant.errors import ProviderConnectionError, ProviderTimeoutError
from services.shared.models import EventResponse


def reply(message: str, action: dict = None) -> str:
    body = {"message": message}
    if action is not None:
        body["action"] = action
    return json.dumps(body)


def test_root_and_health(client) -> None:
    root = client.get("/")
    assert root.status_code == 200
    assert root.text == "Server is running! Try /api/events"

    assert client.get("/health").json()["status"] == "healthy"


# Chat

def test_chat_creates_event(client, provider, store) -> None:
    provider.responses.append(
        "<think>The user is in EST, 3pm is 20:00 UTC.</think>"
        + reply("I've booked your dentist appointment!", {
            "type": "create",
            "title": "Dentist",
            "description": "Check-up",
            "start": "2025-01-03T20:00:00Z",
            "end": "2025-01-03T21:00:00Z",
        })
    )

    response = client.post("/api/chat", json={"message": "Book a dentist appointment tomorrow at 3pm", "timezone": "EST"})

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "I've booked your dentist appointment!"
    assert data["action"]["type"] == "create"
    assert data["result"]["outcome"] == "created"
    assert data["result"]["rows_affected"] == 1

    events = store.list_events()
    assert len(events) == 1
    assert events[0].id == data["result"]["event_id"]
    assert events[0].title == "Dentist"
    assert events[0].start == datetime(2025, 1, 3, 20, 0, tzinfo=timezone.utc)
    assert events[0].color == "var(--tokyo-purple)"


def test_chat_books_dentist_in_utc(client, provider, store) -> None:
    provider.responses.append(
        '{"message": "Added!", "action": {"type": "create", "title": "Dentist", "description": "", '
        '"start": "2025-01-02T20:00:00Z", "end": "2025-01-02T21:00:00Z"}}'
    )

    response = client.post(
        "/api/chat",
        json={"message": "Book a dentist appointment tomorrow at 3pm", "timezone": "EST"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Added!"
    assert data["action"]["type"] == "create"
    assert data["action"]["title"] == "Dentist"
    assert datetime.fromisoformat(data["action"]["start"].replace("Z", "+00:00")) == datetime(
        2025, 1, 2, 20, 0, tzinfo=timezone.utc
    )
    events = store.list_events()
    assert len(events) == 1
    assert events[0].start == datetime(2025, 1, 2, 20, 0, tzinfo=timezone.utc)
    assert events[0].end == datetime(2025, 1, 2, 21, 0, tzinfo=timezone.utc)
    assert "UTC" in provider.prompts[0].system


def test_chat_reasoning_then_response(client, provider, store, make_event) -> None:
    make_event()
    provider.responses.append('<think>reasoning...</think>{"message": "Done", "action": {"type": "response"}}')

    response = client.post("/api/chat", json={"message": "Anything today?"})

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Done"
    assert data["action"] == {"type": "response"}
    assert [e.title for e in store.list_events()] == ["Standup"]


def test_chat_prompt_carries_schedule_and_timezone(client, provider, make_event) -> None:
    event = make_event()
    provider.responses.append(reply("You have a standup.", {"type": "response"}))

    client.post("/api/chat", json={"message": "What's on today?", "timezone": "EST"})

    prompt = provider.prompts[0]
    assert prompt.user == "What's on today?"
    assert prompt.timezone == "EST"
    assert "- Standup: " in prompt.system
    assert f"[id: {event.id}]" in prompt.system


def test_chat_without_timezone_uses_sentinel(client, provider) -> None:
    provider.responses.append(reply("Hi"))

    client.post("/api/chat", json={"message": "Hello"})

    assert provider.prompts[0].timezone == "unspecified"


def test_chat_plain_text_reply(client, provider, store) -> None:
    """Unstructured model output is passed through as the message."""
    provider.responses.append("Sorry, I can't help with that.")

    response = client.post("/api/chat", json={"message": "Order me a pizza"})

    assert response.status_code == 200
    assert response.json() == {"message": "Sorry, I can't help with that."}
    assert store.count() == 0


def test_chat_response_action_changes_nothing(client, provider, store, make_event) -> None:
    event = make_event()
    provider.responses.append(reply("Your afternoon is free.", {"type": "response"}))

    response = client.post("/api/chat", json={"message": "Am I free this afternoon?"})

    assert response.status_code == 200
    assert response.json()["result"]["outcome"] == "noop"
    stored = store.get_event(event.id)
    assert stored.title == event.title
    assert stored.updated_at == event.updated_at


def test_chat_updates_event(client, provider, store, make_event) -> None:
    event = make_event()
    provider.responses.append(reply("Moved your standup.", {
        "type": "update",
        "event_id": event.id,
        "start": "2025-01-02T17:00:00Z",
        "end": "2025-01-02T17:30:00Z",
    }))

    response = client.post("/api/chat", json={"message": "Move standup to noon EST"})

    assert response.json()["result"]["outcome"] == "updated"
    updated = store.get_event(event.id)
    assert updated.start == datetime(2025, 1, 2, 17, 0, tzinfo=timezone.utc)
    assert updated.title == "Standup"


def test_chat_deletes_event(client, provider, store, make_event) -> None:
    event = make_event()
    provider.responses.append(reply("Cancelled your standup.", {"type": "delete", "event_id": event.id}))

    response = client.post("/api/chat", json={"message": "Cancel standup"})

    assert response.status_code == 200
    assert response.json()["result"]["outcome"] == "deleted"
    assert store.count() == 0


def test_chat_missing_target_is_reported(client, provider, make_event) -> None:
    """An update for an id that does not exist is not an error, but it is visible."""
    make_event()
    provider.responses.append(reply("Updated!", {"type": "update", "event_id": "no-such-id", "title": "X"}))

    response = client.post("/api/chat", json={"message": "Rename my meeting"})

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Updated!"
    assert data["result"] == {"outcome": "not_found", "event_id": "no-such-id", "rows_affected": 0}


def test_chat_provider_failure(client, provider, store) -> None:
    provider.error = ProviderConnectionError("failed to make request to Ollama: connection refused")

    response = client.post("/api/chat", json={"message": "Book lunch tomorrow"})

    assert response.status_code == 500
    assert response.json() == {"error": "failed to make request to Ollama: connection refused"}
    assert store.count() == 0


def test_chat_provider_timeout(client, provider) -> None:
    provider.error = ProviderTimeoutError("Ollama request timed out after 120.0 seconds")

    response = client.post("/api/chat", json={"message": "Hello"})

    assert response.status_code == 500
    assert "timed out" in response.json()["error"]


def test_chat_invalid_action_hides_message(client, provider, store) -> None:
    provider.responses.append(reply("Booked!", {"type": "create", "title": "Lunch"}))

    response = client.post("/api/chat", json={"message": "Book lunch"})

    assert response.status_code == 500
    assert "message" not in response.json()
    assert "start and end" in response.json()["error"]
    assert store.count() == 0


def test_chat_unknown_action_is_dropped(client, provider, store) -> None:
    provider.responses.append(reply("Rescheduled.", {"type": "reschedule", "event_id": "abc"}))

    response = client.post("/api/chat", json={"message": "Push everything back"})

    assert response.status_code == 200
    assert response.json() == {"message": "Rescheduled."}


def test_chat_rejects_invalid_body(client, provider) -> None:
    for body in ({}, {"message": 12}, {"timezone": "EST"}):
        response = client.post("/api/chat", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request body"}

    response = client.post("/api/chat", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert provider.prompts == []


# Events

def test_event_crud(client, store) -> None:
    created = client.post("/api/events", json={
        "title": "Gym",
        "description": "Leg day",
        "start": "2025-01-03T07:00:00Z",
        "end": "2025-01-03T08:00:00Z",
    })
    assert created.status_code == 201
    event = EventResponse.model_validate(created.json())
    assert event.id
    assert event.color == "var(--tokyo-purple)"
    assert event.created_at is not None
    assert "createdAt" in created.json()

    listed = client.get("/api/events")
    assert [e["id"] for e in listed.json()] == [event.id]

    updated = client.put(f"/api/events/{event.id}", json={"title": "Gym (upper body)"})
    assert updated.status_code == 200
    assert updated.json()["title"] == "Gym (upper body)"
    assert updated.json()["description"] == "Leg day"

    deleted = client.delete(f"/api/events/{event.id}")
    assert deleted.status_code == 204
    assert client.get("/api/events").json() == []


def test_create_event_keeps_color_and_ignores_client_id(client) -> None:
    response = client.post("/api/events", json={
        "id": "client-chosen",
        "title": "Run",
        "start": "2025-01-03T07:00:00Z",
        "end": "2025-01-03T08:00:00Z",
        "color": "var(--tokyo-green)",
    })

    assert response.json()["color"] == "var(--tokyo-green)"
    assert response.json()["id"] != "client-chosen"


def test_missing_events_return_404(client) -> None:
    response = client.put("/api/events/nope", json={"title": "X"})
    assert response.status_code == 404
    assert response.json() == {"error": "Event not found"}

    response = client.delete("/api/events/nope")
    assert response.status_code == 404


def test_create_event_requires_times(client) -> None:
    response = client.post("/api/events", json={"title": "Someday"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}
