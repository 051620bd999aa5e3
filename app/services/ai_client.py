"""OpenRouter chat-completions client used for code review requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from app.core.config import settings
from app.services.prompts import build_prompt, resolve_language, system_prompt

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AICompletion:
    """Outcome of a single model call: the review text or an error description."""

    text: str = ""
    is_error: bool = False
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> "AICompletion":
        return cls(text="", is_error=True, error=error)


class AIService(Protocol):
    async def analyze_code(
        self,
        content: str,
        standards: list[str],
        requirements: str | None,
        api_key: str,
        model: str,
        language: str | None,
        is_file_content: bool = False,
    ) -> AICompletion:  # pragma: no cover - interface
        ...


class OpenRouterClient:
    """Sends review prompts to the OpenRouter chat-completions endpoint.

    Failures are reported through :class:`AICompletion` rather than raised so the
    orchestrator can classify them (rate limiting in particular) by message.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        referer: str | None = None,
        title: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        normalized_base = (base_url or settings.openrouter_base_url).rstrip("/") + "/"
        self._temperature = settings.ai_temperature if temperature is None else temperature
        self._max_tokens = settings.ai_max_tokens if max_tokens is None else max_tokens
        self._referer = referer or settings.openrouter_referer
        self._title = title or settings.openrouter_title
        self._client = httpx.AsyncClient(
            base_url=normalized_base,
            timeout=timeout or settings.ai_request_timeout_seconds,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def analyze_code(
        self,
        content: str,
        standards: list[str],
        requirements: str | None,
        api_key: str,
        model: str,
        language: str | None,
        is_file_content: bool = False,
    ) -> AICompletion:
        if not api_key:
            return AICompletion.failure("OpenRouter API key not configured")
        if not content:
            return AICompletion.failure("No file content to analyze" if is_file_content else "No code changes to analyze")

        template = resolve_language(language)
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt(template)},
                {
                    "role": "user",
                    "content": build_prompt(content, standards, requirements, language, is_file_content),
                },
            ],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "HTTP-Referer": self._referer,
            "X-Title": self._title,
        }

        try:
            response = await self._client.post("chat/completions", json=payload, headers=headers)
            if response.status_code >= 400:
                return AICompletion.failure(f"HTTP {response.status_code} {response.reason_phrase}: {response.text}")
            body = response.json()
            text = body["choices"][0]["message"]["content"] or "No analysis returned"
        except httpx.TimeoutException:
            _logger.exception("Network timeout during AI analysis with model %s", model)
            return AICompletion.failure("Network timeout during AI analysis. Please try again.")
        except httpx.HTTPError:
            _logger.exception("Network error during AI analysis with model %s", model)
            return AICompletion.failure("Network error during AI analysis. Please check your connection and try again.")
        except (ValueError, KeyError, IndexError, TypeError):
            _logger.exception("Malformed AI response from model %s", model)
            return AICompletion.failure("Error processing AI response. Please try again.")

        _logger.info("AI analysis returned %d characters from model %s", len(text), model)
        return AICompletion(text=text)
