# -*- coding: utf-8 -*-
"""Language-model providers.

Each provider turns a ComposedPrompt into the model's raw text. Parsing is
not theirs to do: ``Provider.query`` hands every raw response to the one
shared interpreter, so both backends parse identically.
"""
from __future__ import annotations

import json
import logging
import time
import typing as t
from abc import ABC, abstractmethod

import httpx
import openai
from openai import OpenAI

from calendar_assistant.config import Settings
from calendar_assistant.errors import (
    EmptyCompletionError,
    ProviderConnectionError,
    ProviderError,
    ProviderResponseTooLargeError,
    ProviderStatusError,
    ProviderTimeoutError,
)
from calendar_assistant.interpreter import interpret_response
from calendar_assistant.prompt import ComposedPrompt
from services.shared.models import AssistantReply


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0
DEFAULT_MAX_RESPONSE_CHARS = 1024 * 1024
DEFAULT_MAX_LINE_CHARS = 1024 * 1024


class Provider(ABC):
    """A backend that can answer a composed prompt with text."""

    name: str = "provider"

    @abstractmethod
    def generate(self, prompt: ComposedPrompt) -> str:
        """Return the model's full raw output for ``prompt``.

        :raises ProviderError: On transport failure, bad status or no output.
        """

    def query(self, prompt: ComposedPrompt) -> AssistantReply:
        """Run the prompt and interpret the output. Single attempt, no retry."""
        raw = self.generate(prompt)
        logger.info("%s returned %d characters", self.name, len(raw))
        return interpret_response(raw)

    def close(self) -> None:
        """Release any connection pool the provider owns."""


class OllamaProvider(Provider):
    """Local model served by Ollama, read as a newline-delimited JSON stream.

    ``timeout`` bounds each connect and read and also the whole stream, so a
    model that keeps producing tokens cannot hold a chat turn open forever.
    """

    name = "ollama"

    def __init__(
            self,
            base_url: str = "http://127.0.0.1:11434",
            model: str = "deepseek-r1:8b",
            timeout: float = DEFAULT_TIMEOUT,
            max_response_chars: int = DEFAULT_MAX_RESPONSE_CHARS,
            http_client: t.Optional[httpx.Client] = None,
            max_line_chars: int = DEFAULT_MAX_LINE_CHARS,
            clock: t.Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_response_chars = max_response_chars
        self.max_line_chars = max_line_chars
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)
        self._clock = clock
        self.timeout = timeout

    def _payload(self, prompt: ComposedPrompt) -> dict[str, t.Any]:
        return {
            "model": self.model,
            "prompt": prompt.user,
            "system": prompt.system,
            "stream": True,
        }

    def generate(self, prompt: ComposedPrompt) -> str:
        url = f"{self.base_url}/api/generate"
        deadline = self._clock() + self.timeout
        try:
            with self._client.stream("POST", url, json=self._payload(prompt), timeout=self.timeout) as response:
                if response.status_code >= 400:
                    response.read()
                    raise ProviderStatusError(self.name, response.status_code, response.text)
                return self._collect(self._split_lines(response.iter_text()), deadline)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"Ollama request timed out after {self.timeout} seconds") from e
        except httpx.TransportError as e:
            raise ProviderConnectionError(f"failed to make request to Ollama: {e}") from e

    def _split_lines(self, chunks: t.Iterable[str]) -> t.Iterator[str]:
        """Split decoded text into lines, refusing any line over ``max_line_chars``."""
        pending = ""
        for chunk in chunks:
            pending += chunk
            *lines, pending = pending.split("\n")
            for line in lines:
                self._check_line(line)
                yield line
            self._check_line(pending)
        if pending:
            yield pending

    def _check_line(self, line: str) -> None:
        if len(line) > self.max_line_chars:
            raise ProviderResponseTooLargeError(
                f"Ollama stream line exceeded {self.max_line_chars} characters"
            )

    def _collect(self, lines: t.Iterable[str], deadline: t.Optional[float] = None) -> str:
        """Concatenate partial outputs until the chunk marked ``done``.

        The ``response`` of the ``done`` chunk is kept too; Ollama sends it empty.
        """
        parts: list[str] = []
        size = 0
        skipped = 0
        for line in lines:
            if deadline is not None and self._clock() > deadline:
                raise ProviderTimeoutError(
                    f"Ollama response not complete after {self.timeout} seconds"
                )
            if not line.strip():
                continue
            try:
                chunk = json.loads(line)
            except (ValueError, RecursionError):
                skipped += 1
                continue
            if not isinstance(chunk, dict):
                skipped += 1
                continue

            piece = chunk.get("response") or ""
            if isinstance(piece, str) and piece:
                size += len(piece)
                if size > self.max_response_chars:
                    raise ProviderResponseTooLargeError(
                        f"Ollama output exceeded {self.max_response_chars} characters"
                    )
                parts.append(piece)

            if chunk.get("done"):
                if skipped:
                    logger.warning("Skipped %d malformed stream line(s) from Ollama", skipped)
                logger.debug("Ollama stream finished (done_reason=%s)", chunk.get("done_reason"))
                return "".join(parts)

        raise ProviderError("Ollama stream ended before the response was complete")

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class OpenAIProvider(Provider):
    """Hosted chat-completions API, one non-streaming request per turn."""

    name = "openai"

    def __init__(
            self,
            api_key: str,
            model: str = "gpt-3.5-turbo",
            base_url: str = "https://api.openai.com/v1",
            temperature: float = 0.7,
            timeout: float = DEFAULT_TIMEOUT,
            http_client: t.Optional[httpx.Client] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    def generate(self, prompt: ComposedPrompt) -> str:
        try:
            completion = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompt.system},
                    {"role": "user", "content": prompt.user},
                ],
                temperature=self.temperature,
            )
        except openai.APITimeoutError as e:
            raise ProviderTimeoutError(f"OpenAI request timed out after {self.timeout} seconds") from e
        except openai.APIConnectionError as e:
            raise ProviderConnectionError(f"failed to make request to OpenAI: {e}") from e
        except openai.APIStatusError as e:
            raise ProviderStatusError(self.name, e.status_code, e.response.text) from e

        if not completion.choices:
            raise EmptyCompletionError("no response from OpenAI")
        return completion.choices[0].message.content or ""

    def close(self) -> None:
        self._client.close()


def build_provider(settings: Settings) -> Provider:
    """Construct the provider named by the settings. Called once at startup."""
    provider = settings.resolved_provider()
    if provider == "openai":
        if not settings.has_openai_key:
            raise ValueError("LLM_PROVIDER is 'openai' but OPENAI_API_KEY is not set")
        logger.info("Using OpenAI provider (model %s)", settings.openai_model)
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            temperature=settings.openai_temperature,
            timeout=settings.llm_timeout,
        )
    if provider == "ollama":
        logger.info("Using Ollama provider at %s (model %s)", settings.ollama_host, settings.ollama_model)
        return OllamaProvider(
            base_url=settings.ollama_host,
            model=settings.ollama_model,
            timeout=settings.llm_timeout,
            max_response_chars=settings.max_response_chars,
        )
    raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")
