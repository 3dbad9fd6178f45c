# -*- coding: utf-8 -*-
"""Command line entry points for the calendar service.

Examples:
    # Start the API server
    python -m calendar_assistant.run serve --port 8080

    # Fill an empty database with demo events
    python -m calendar_assistant.run seed

    # Talk to a running server
    python -m calendar_assistant.run chat "Book a dentist appointment tomorrow at 3pm" --timezone EST
"""
from __future__ import annotations

import json
import os
import typing as t

import click
import httpx
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table
from rich.markdown import Markdown

from calendar_assistant.config import Settings, configure_logging
from calendar_assistant.schedule import ScheduleRenderer, format_end, format_start
from calendar_store.seed import seed_demo_events
from calendar_store.store import EventStore


console = Console()

CALENDAR_SERVICE_URL = os.getenv("CALENDAR_SERVICE_URL", "http://localhost:8080")
CHAT_TIMEOUT = 180.0


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
def cli() -> None:
    """Calendar service with an LLM scheduling assistant."""


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind.")
@click.option("--port", default=8080, type=int, help="Port to listen on.")
@click.option("--reload", is_flag=True, help="Reload on code changes (development).")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    console.print(
        Panel.fit(
            f"[bold blue]📅 Calendar Service[/bold blue]\n"
            f"Listening on [cyan]http://{host}:{port}[/cyan]\n"
            f"LLM provider: [cyan]{settings.resolved_provider()}[/cyan]",
            border_style="blue",
        )
    )
    uvicorn.run("services.calendar_service.app:app", host=host, port=port, reload=reload)


@cli.command()
def seed() -> None:
    """Insert demo events for today and the next two days."""
    settings = Settings.from_env()
    store = EventStore.from_url(settings.database_url)
    events = seed_demo_events(store)

    table = Table(title="🌱 Seeded events", show_header=True, header_style="bold magenta")
    table.add_column("Title", style="white")
    table.add_column("Start", style="yellow")
    table.add_column("End", style="yellow")
    for event in events:
        table.add_row(event.title, format_start(event.start), format_end(event.end))
    console.print(table)
    console.print(f"[green]✓ Seed completed:[/green] {len(events)} event(s) in {settings.database_url}")


@cli.command()
@click.option("--timezone", "timezone_label", default=None, help="Render times in this tz database zone.")
@click.option("--ids", is_flag=True, help="Include event identifiers.")
def schedule(timezone_label: t.Optional[str], ids: bool) -> None:
    """Print the schedule digest the assistant sees."""
    settings = Settings.from_env()
    store = EventStore.from_url(settings.database_url)
    console.print(ScheduleRenderer(store, include_ids=ids).render(timezone_label), markup=False)


@cli.command()
@click.argument("message")
@click.option("--timezone", "timezone_label", default=None, help="Your timezone, e.g. EST or America/New_York.")
@click.option("--url", default=CALENDAR_SERVICE_URL, show_default=True, help="Calendar service base URL.")
def chat(message: str, timezone_label: t.Optional[str], url: str) -> None:
    """Send MESSAGE to a running calendar service."""
    payload: dict[str, t.Any] = {"message": message}
    if timezone_label:
        payload["timezone"] = timezone_label

    try:
        with console.status("[bold green]Waiting for the assistant...[/bold green]"):
            with httpx.Client(timeout=CHAT_TIMEOUT) as client:
                response = client.post(f"{url.rstrip('/')}/api/chat", json=payload)
    except httpx.HTTPError as e:
        console.print(f"[red]Error:[/red] could not reach {url}: {e}")
        raise SystemExit(1)

    try:
        data = response.json()
    except ValueError:
        data = {}
    if response.status_code != 200:
        console.print(f"[red]Error ({response.status_code}):[/red] {data.get('error', response.text)}")
        raise SystemExit(1)

    console.print(Panel(Markdown(data.get("message", "")), title="🤖 Assistant", border_style="blue"))
    if data.get("action"):
        console.print(Panel(JSON(json.dumps(data["action"])), title="📋 Action", border_style="dim"))
    result = data.get("result")
    if result and result.get("outcome") == "not_found":
        console.print(f"[yellow]⚠ No event with id {result.get('event_id')} was found; nothing changed.[/yellow]")
    elif result and result.get("outcome") != "noop":
        console.print(f"[green]✓ Calendar {result['outcome']}[/green]")


if __name__ == "__main__":
    cli()
