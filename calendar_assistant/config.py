# -*- coding: utf-8 -*-
"""Configuration loaded from environment variables."""
from __future__ import annotations

import logging
import os
import typing as t
from dataclasses import dataclass, field


API_KEY_PLACEHOLDER = "your_api_key_here"
DEFAULT_EVENT_COLOR = "var(--tokyo-purple)"

LOG_FORMAT = "[%(asctime)s] [%(levelname)-7s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the calendar service and its assistant."""
    database_url: str = "sqlite:///calendar.db"

    # LLM provider selection: "openai", "ollama" or "auto"
    llm_provider: str = "auto"
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-3.5-turbo"
    openai_temperature: float = 0.7
    ollama_host: str = "http://127.0.0.1:11434"
    ollama_model: str = "deepseek-r1:8b"
    llm_timeout: float = 120.0
    max_response_chars: int = 1024 * 1024

    default_color: str = DEFAULT_EVENT_COLOR
    digest_include_ids: bool = True

    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("CALENDAR_DATABASE_URL", "sqlite:///calendar.db"),
            llm_provider=os.getenv("LLM_PROVIDER", "auto").strip().lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-3.5-turbo"),
            openai_temperature=float(os.getenv("OPENAI_TEMPERATURE", "0.7")),
            ollama_host=os.getenv("OLLAMA_HOST", "http://127.0.0.1:11434"),
            ollama_model=os.getenv("OLLAMA_MODEL", "deepseek-r1:8b"),
            llm_timeout=float(os.getenv("LLM_TIMEOUT_SECONDS", "120")),
            max_response_chars=int(os.getenv("LLM_MAX_RESPONSE_CHARS", str(1024 * 1024))),
            default_color=os.getenv("CALENDAR_DEFAULT_COLOR", DEFAULT_EVENT_COLOR),
            digest_include_ids=_env_bool("CALENDAR_DIGEST_INCLUDE_IDS", True),
            cors_origins=_env_list("CORS_ORIGINS", "http://localhost:3000"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def has_openai_key(self) -> bool:
        return bool(self.openai_api_key) and self.openai_api_key != API_KEY_PLACEHOLDER

    def resolved_provider(self) -> str:
        """Return the provider name after resolving "auto"."""
        if self.llm_provider == "auto":
            return "openai" if self.has_openai_key else "ollama"
        return self.llm_provider


def configure_logging(level: t.Union[str, int] = "INFO") -> None:
    """Configure root logging for the service and CLI."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
