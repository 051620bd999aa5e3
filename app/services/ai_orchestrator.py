"""Deadline-bounded AI calls with a single rate-limit fallback."""

from __future__ import annotations

import asyncio
import logging

from app.core.config import settings
from app.models.domain import AIModelOutcome
from app.services.ai_client import AICompletion, AIService
from app.telemetry import increment_ai_fallback

_logger = logging.getLogger(__name__)

_RATE_LIMIT_MARKERS = ("429", "rate limit", "too many requests")


def is_rate_limit_error(message: str | None) -> bool:
    """Classify an AI error message as rate limiting.

    Any occurrence of "429" counts, even outside an HTTP status position.
    """

    if not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in _RATE_LIMIT_MARKERS)


def timeout_message(seconds: float) -> str:
    return f"AI analysis timed out after {seconds:g} seconds"


class AIOrchestrator:
    """Runs the primary model and, when it is rate limited, the fallback model once.

    Both calls share one deadline. Expiry anywhere in the sequence yields the
    timeout outcome attributed to the primary model.
    """

    def __init__(self, ai_service: AIService, timeout_seconds: float | None = None) -> None:
        self._ai_service = ai_service
        self._timeout = settings.ai_timeout_seconds if timeout_seconds is None else timeout_seconds

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    async def analyze(
        self,
        content: str,
        standards: list[str],
        requirements: str | None,
        api_key: str,
        primary_model: str,
        fallback_model: str | None,
        language: str | None,
        is_file_content: bool,
    ) -> AIModelOutcome:
        _logger.info(
            "[AIAnalysis] Starting AI analysis: content length %d, %d standards, model %s",
            len(content),
            len(standards),
            primary_model,
        )

        async def call(model: str) -> AICompletion:
            return await self._ai_service.analyze_code(
                content, standards, requirements, api_key, model, language, is_file_content
            )

        async def run_sequence() -> AIModelOutcome:
            completion = await call(primary_model)
            used_model = primary_model
            if completion.is_error and is_rate_limit_error(completion.error) and fallback_model:
                _logger.info("[AIAnalysis] Rate limit detected, falling back to %s", fallback_model)
                increment_ai_fallback(fallback_model)
                used_model = fallback_model
                completion = await call(fallback_model)
            return AIModelOutcome(
                success=not completion.is_error,
                analysis="" if completion.is_error else completion.text,
                error=completion.error if completion.is_error else None,
                model_used=used_model,
            )

        # Only the shared deadline yields the timeout outcome; a TimeoutError
        # raised by the AI service itself is an unexpected error.
        sequence = asyncio.create_task(run_sequence())
        try:
            done, _ = await asyncio.wait({sequence}, timeout=self._timeout)
        except asyncio.CancelledError:
            sequence.cancel()
            raise

        if not done:
            sequence.cancel()
            await asyncio.wait({sequence})
            message = timeout_message(self._timeout)
            _logger.error("[AIAnalysis] %s", message)
            outcome = AIModelOutcome(success=False, analysis="", error=message, model_used=primary_model)
        else:
            try:
                outcome = sequence.result()
            except Exception as exc:
                _logger.exception("[AIAnalysis] Unexpected exception during AI service call")
                outcome = AIModelOutcome(
                    success=False,
                    analysis="",
                    error=f"Unexpected error calling AI service: {exc}",
                    model_used=primary_model,
                )

        _logger.info(
            "[AIAnalysis] AI analysis finished: model %s, success %s", outcome.model_used, outcome.success
        )
        return outcome
