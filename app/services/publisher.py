"""Persists analysis snapshots and broadcasts progress to listeners."""

from __future__ import annotations

import logging
from typing import Optional

from app.models.domain import AnalysisRecord, AnalysisResults
from app.repositories.redis_store import AnalysisStore
from app.telemetry import EventSink, ProgressBroker

_logger = logging.getLogger(__name__)


def build_event(event_type: str, record: AnalysisRecord, **extra) -> dict:
    event = {
        "type": event_type,
        "analysis_id": record.analysis_id,
        "status": record.status.value,
        "message": record.message,
        "model_used": record.model_used,
        "fallback_model": record.fallback_model,
        "timestamp": record.updated_at.isoformat(),
    }
    event.update(extra)
    return event


class ResultPublisher:
    """Caches each record snapshot, then fans the matching event out.

    Cache writes propagate failures; broadcast failures are logged and dropped.
    """

    def __init__(self, store: AnalysisStore, sink: EventSink, broker: ProgressBroker) -> None:
        self._store = store
        self._sink = sink
        self._broker = broker

    def publish_progress(self, record: AnalysisRecord) -> None:
        self._store.save_record(record)
        self._broadcast(build_event("progress", record))

    def publish_error(self, record: AnalysisRecord) -> None:
        self._store.save_record(record)
        self._broadcast(build_event("error", record, error=record.error))

    def publish_complete(
        self,
        record: AnalysisRecord,
        results: AnalysisResults,
        session_id: Optional[str] = None,
    ) -> None:
        self._store.save_record(record)
        if session_id:
            self._store.remember_session_analysis(session_id, record)
        self._broadcast(
            build_event(
                "complete",
                record,
                result=record.result,
                results=results.model_dump(mode="json"),
            )
        )

    def _broadcast(self, event: dict) -> None:
        analysis_id = event["analysis_id"]
        try:
            self._broker.publish(analysis_id, event)
        except Exception:
            _logger.warning("[Analysis %s] Failed to notify subscribers of %s event", analysis_id, event["type"], exc_info=True)
        try:
            self._sink.publish(event)
        except Exception:
            _logger.warning("[Analysis %s] Failed to export %s event", analysis_id, event["type"], exc_info=True)
