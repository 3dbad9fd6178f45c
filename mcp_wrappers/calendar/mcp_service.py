"""
MCP wrapper for the calendar service.

Exposes the calendar assistant and the event list as MCP tools. Each tool
makes an HTTP call to the running calendar service and converts the JSON
response back into the shared Pydantic models.
"""
from __future__ import annotations

import os
import typing as t

import httpx
from fastmcp import FastMCP

from services.shared.models import ChatRequest, ChatResponse, EventResponse


mcp = FastMCP("CalendarMCPWrapper")

# Service URL - configurable via environment variable
CALENDAR_SERVICE_URL = os.getenv("CALENDAR_SERVICE_URL", "http://localhost:8080")

# Chat turns wait on a language model; listing is a plain read
CHAT_TIMEOUT = 180.0
STANDARD_TIMEOUT = 30.0


def _call_service(
        method: str,
        path: str,
        timeout: float,
        client: t.Optional[httpx.Client] = None,
        **kwargs: t.Any,
) -> t.Any:
    """Send one request to the calendar service and return the decoded JSON."""
    url = f"{CALENDAR_SERVICE_URL.rstrip('/')}{path}"
    try:
        if client is not None:
            response = client.request(method, url, timeout=timeout, **kwargs)
            response.raise_for_status()
        else:
            with httpx.Client(timeout=timeout) as owned_client:
                response = owned_client.request(method, url, **kwargs)
                response.raise_for_status()
        return response.json()

    except httpx.TimeoutException:
        raise RuntimeError(f"{method} {path} timed out after {timeout} seconds")
    except httpx.HTTPStatusError as e:
        raise RuntimeError(f"HTTP error from calendar service: {e.response.status_code} {e.response.text}")
    except httpx.HTTPError as e:
        raise RuntimeError(f"Error calling calendar service: {str(e)}")


def _chat_with_calendar(
        message: str,
        timezone: str = "",
        client: t.Optional[httpx.Client] = None,
) -> ChatResponse:
    """
    Ask the calendar assistant something.

    The assistant may create, update or delete one event as a side effect;
    the returned action and result describe what it did.
    """
    request = ChatRequest(message=message, timezone=timezone or None)
    data = _call_service(
        "POST",
        "/api/chat",
        CHAT_TIMEOUT,
        client=client,
        json=request.model_dump(exclude_none=True),
    )
    return ChatResponse.model_validate(data)


def _list_calendar_events(client: t.Optional[httpx.Client] = None) -> list[EventResponse]:
    """List all calendar events from the calendar service."""
    data = _call_service("GET", "/api/events", STANDARD_TIMEOUT, client=client)
    return [EventResponse.model_validate(event) for event in data]


# MCP tool wrappers that call the raw functions
@mcp.tool()
def chat_with_calendar(message: str, timezone: str = "") -> ChatResponse:
    """Sends a natural-language request to the calendar assistant."""
    return _chat_with_calendar(message, timezone)


@mcp.tool()
def list_calendar_events() -> list[EventResponse]:
    """Lists all calendar events."""
    return _list_calendar_events()


if __name__ == "__main__":
    mcp.run()
