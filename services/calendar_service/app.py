"""
FastAPI service for calendar events and the chat assistant.

Event CRUD endpoints are plain wrappers over the event store. ``POST /api/chat``
runs one chat turn through the ChatBridge: the model reads the schedule and
may create, update or delete a single event.

The provider and store are built once at startup and injected into the
routes; tests pass their own through ``create_app``.
"""
from __future__ import annotations

import logging
import typing as t
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from calendar_assistant.bridge import ChatBridge
from calendar_assistant.config import Settings, configure_logging
from calendar_assistant.errors import BridgeError
from calendar_assistant.providers import Provider, build_provider
from calendar_store.models import Event
from calendar_store.store import EventStore
from services.shared.models import (
    ChatRequest,
    ChatResponse,
    CreateEventRequest,
    EventResponse,
    UpdateEventRequest,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> EventStore:
    return request.app.state.store


def get_bridge(request: Request) -> ChatBridge:
    return request.app.state.bridge


def _to_event_response(event: Event) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        start=event.start,
        end=event.end,
        color=event.color,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


@router.get("/events", response_model=list[EventResponse])
def list_events(store: EventStore = Depends(get_store)) -> list[EventResponse]:
    """List all events that have not been deleted."""
    try:
        events = store.list_events()
    except SQLAlchemyError as e:
        logger.error("Failed to fetch events: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch events")
    logger.info("Fetched %d events", len(events))
    return [_to_event_response(event) for event in events]


@router.post("/events", response_model=EventResponse, status_code=201)
def create_event(
        request: CreateEventRequest,
        store: EventStore = Depends(get_store),
        settings: Settings = Depends(get_settings),
) -> EventResponse:
    """Create an event. The identifier is always generated by the server."""
    event = Event(
        title=request.title,
        description=request.description,
        start=request.start,
        end=request.end,
        color=request.color or settings.default_color,
    )
    try:
        store.insert(event)
    except SQLAlchemyError as e:
        logger.error("Failed to create event: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create event")
    return _to_event_response(event)


@router.put("/events/{event_id}", response_model=EventResponse)
def update_event(
        event_id: str,
        request: UpdateEventRequest,
        store: EventStore = Depends(get_store),
) -> EventResponse:
    """Update the given fields of an event."""
    fields = request.model_dump(exclude_unset=True, exclude_none=True)
    try:
        rows = store.update_fields(event_id, fields)
        event = store.get_event(event_id) if rows else None
    except SQLAlchemyError as e:
        logger.error("Failed to update event %s: %s", event_id, e)
        raise HTTPException(status_code=500, detail="Failed to update event")
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return _to_event_response(event)


@router.delete("/events/{event_id}", status_code=204)
def delete_event(event_id: str, store: EventStore = Depends(get_store)) -> Response:
    """Soft-delete an event."""
    try:
        rows = store.soft_delete(event_id)
    except SQLAlchemyError as e:
        logger.error("Failed to delete event %s: %s", event_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete event")
    if rows == 0:
        raise HTTPException(status_code=404, detail="Event not found")
    return Response(status_code=204)


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
def chat(request: ChatRequest, bridge: ChatBridge = Depends(get_bridge)) -> ChatResponse:
    """
    Run one chat turn.

    Blocks for as long as the model takes to answer. A failed action is
    reported as an error and the model's message is not returned; an update
    or delete whose target does not exist is returned normally with
    ``result.outcome == "not_found"``.
    """
    try:
        turn = bridge.query(request.message, request.timezone)
    except BridgeError as e:
        logger.error("Chat turn failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))

    return ChatResponse(
        message=turn.reply.message,
        action=turn.reply.action,
        result=turn.result,
    )


def create_app(
        settings: t.Optional[Settings] = None,
        store: t.Optional[EventStore] = None,
        provider: t.Optional[Provider] = None,
) -> FastAPI:
    """Build the application. Missing collaborators are created from settings."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the store and construct the provider once per process."""
        configure_logging(settings.log_level)
        app.state.settings = settings
        app.state.store = store or EventStore.from_url(settings.database_url)
        app.state.provider = provider or build_provider(settings)
        app.state.bridge = ChatBridge(
            provider=app.state.provider,
            store=app.state.store,
            default_color=settings.default_color,
            include_ids=settings.digest_include_ids,
        )

        yield

        if provider is None:
            app.state.provider.close()
        logger.info("Calendar service shutting down")

    app = FastAPI(
        title="Calendar Service",
        description="REST API for calendar events with an LLM scheduling assistant",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Origin", "Content-Type", "Accept"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "Server is running! Try /api/events"

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container orchestration."""
        return {"status": "healthy", "service": "calendar-service"}

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
