"""Event sink implementations for exporting analysis progress events."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Protocol

import requests

from app.core.config import settings


class EventSink(Protocol):
    """Abstract sink contract."""

    def publish(self, event: dict) -> None:  # pragma: no cover - interface
        ...

    def close(self) -> None:  # pragma: no cover - interface
        ...


class NullEventSink:
    """No-op sink used when event export is disabled."""

    def publish(self, event: dict) -> None:
        return None

    def close(self) -> None:
        return None


class FileEventSink:
    """Persists events to newline-delimited JSON for downstream ingestion."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def publish(self, event: dict) -> None:
        payload = json.dumps(event, separators=(",", ":"), sort_keys=True, default=str)
        with self._lock, self.path.open("a", encoding="utf-8") as handle:
            handle.write(payload)
            handle.write("\n")

    def close(self) -> None:
        return None


class WebhookEventSink:
    """Forwards events to an HTTP endpoint in JSON batches.

    Terminal events (``complete`` and ``error``) flush the buffer immediately so
    downstream listeners never wait on a partially filled batch for a result.
    """

    _FLUSH_TYPES = {"complete", "error"}

    def __init__(
        self,
        url: str,
        *,
        batch_size: int = 25,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._batch_size = max(batch_size, 1)
        self._timeout = timeout
        self._buffer: list[dict] = []
        self._lock = threading.Lock()
        self._session = session or requests.Session()

    def publish(self, event: dict) -> None:
        with self._lock:
            self._buffer.append(json.loads(json.dumps(event, default=str)))
            if len(self._buffer) >= self._batch_size or event.get("type") in self._FLUSH_TYPES:
                self._flush_locked()

    def close(self) -> None:
        with self._lock:
            self._flush_locked()
        self._session.close()

    def _flush_locked(self) -> None:
        if not self._buffer:
            return
        response = self._session.post(
            self._url,
            json={"events": self._buffer},
            headers={"Content-Type": "application/json"},
            timeout=self._timeout,
        )
        if response.status_code >= 400:
            raise RuntimeError(f"Event webhook rejected batch ({response.status_code}): {response.text}")
        self._buffer.clear()


def sink_from_settings() -> EventSink:
    """Factory to construct an event sink based on app settings."""

    backend = settings.event_sink_backend.lower().strip()
    if backend == "file":
        return FileEventSink(settings.event_sink_path)
    if backend == "webhook":
        if not settings.event_webhook_url:
            raise ValueError("Webhook backend requires REVIEWER_EVENT_WEBHOOK_URL")
        return WebhookEventSink(settings.event_webhook_url, batch_size=settings.event_batch_size)
    if backend in {"off", "none", "disabled"}:
        return NullEventSink()
    raise ValueError(f"Unsupported event sink backend: {settings.event_sink_backend}")
