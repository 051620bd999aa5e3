from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path

import fakeredis

from app.models.domain import AnalysisRecord, AnalysisResults, AnalysisStatus, FeedbackItem, Severity
from app.repositories.redis_store import AnalysisStore
from app.services.publisher import ResultPublisher, build_event
from app.telemetry import FileEventSink, NullEventSink, ProgressBroker


class ExplodingSink:
    def publish(self, event: dict) -> None:
        raise RuntimeError("sink offline")

    def close(self) -> None:
        return None


def _record(status: AnalysisStatus = AnalysisStatus.EXTRACTING_CONTENT, **extra) -> AnalysisRecord:
    now = datetime.now(timezone.utc)
    values = {
        "analysis_id": "an-pub",
        "status": status,
        "message": "Extracting code content...",
        "created_at": now,
        "updated_at": now,
        "model_used": "qwen/qwen3-coder",
    }
    values.update(extra)
    return AnalysisRecord(**values)


def _store() -> AnalysisStore:
    return AnalysisStore(fakeredis.FakeRedis(decode_responses=True))


def test_build_event_carries_record_fields():
    record = _record()

    event = build_event("progress", record, extra_field=1)

    assert event["type"] == "progress"
    assert event["analysis_id"] == "an-pub"
    assert event["status"] == "extracting_content"
    assert event["message"] == "Extracting code content..."
    assert event["timestamp"] == record.updated_at.isoformat()
    assert event["extra_field"] == 1


def test_progress_is_cached_and_exported(tmp_path: Path):
    store = _store()
    sink_path = tmp_path / "events.jsonl"
    publisher = ResultPublisher(store, FileEventSink(sink_path), ProgressBroker())
    record = _record()

    publisher.publish_progress(record)

    assert store.get_record("an-pub") == record
    events = [json.loads(line) for line in sink_path.read_text(encoding="utf-8").splitlines()]
    assert [event["type"] for event in events] == ["progress"]


def test_complete_event_reaches_subscribers_and_remembers_session():
    store = _store()
    broker = ProgressBroker()
    publisher = ResultPublisher(store, NullEventSink(), broker)
    record = _record(AnalysisStatus.COMPLETE, message="Analysis complete", result="📊 SUMMARY: ok")
    results = AnalysisResults(
        analysis_id="an-pub",
        feedback=[FeedbackItem(severity=Severity.WARNING, message="Slow loop")],
        raw_response="📊 SUMMARY: ok",
        model_used="qwen/qwen3-coder",
        created_at=record.created_at,
    )

    async def scenario():
        queue = broker.subscribe("an-pub")
        publisher.publish_complete(record, results, session_id="session-1")
        event = await asyncio.wait_for(queue.get(), timeout=1)
        broker.unsubscribe("an-pub", queue)
        return event

    event = asyncio.run(scenario())

    assert event["type"] == "complete"
    assert event["result"] == "📊 SUMMARY: ok"
    assert event["results"]["feedback"][0]["severity"] == "warning"
    assert store.get_session_analysis("session-1") == "an-pub"
    assert broker.subscriber_count("an-pub") == 0


def test_sink_failures_do_not_block_caching():
    store = _store()
    publisher = ResultPublisher(store, ExplodingSink(), ProgressBroker())
    record = _record(AnalysisStatus.ERROR, message="Commit not found", error="Commit not found")

    publisher.publish_error(record)

    assert store.get_record("an-pub").error == "Commit not found"


def test_broker_publishes_from_worker_thread():
    broker = ProgressBroker()

    async def scenario():
        queue = broker.subscribe("an-thread")
        await asyncio.to_thread(broker.publish, "an-thread", {"type": "progress"})
        return await asyncio.wait_for(queue.get(), timeout=1)

    assert asyncio.run(scenario()) == {"type": "progress"}


def test_broker_drops_events_for_full_queues():
    broker = ProgressBroker(max_queue_size=1)

    async def scenario():
        queue = broker.subscribe("an-slow")
        broker.publish("an-slow", {"n": 1})
        broker.publish("an-slow", {"n": 2})
        return queue.qsize(), await queue.get()

    assert asyncio.run(scenario()) == (1, {"n": 1})
