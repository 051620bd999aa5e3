from datetime import datetime, timedelta, timezone

import fakeredis

from app.models.domain import AnalysisRecord, AnalysisStatus
from app.repositories.redis_store import AnalysisStore


def _record(created_at: datetime, analysis_id: str = "an-1") -> AnalysisRecord:
    return AnalysisRecord(
        analysis_id=analysis_id,
        status=AnalysisStatus.STARTING,
        message="Starting analysis...",
        created_at=created_at,
        updated_at=created_at,
        model_used="qwen/qwen3-coder",
    )


def _store(ttl_seconds: int = 1800):
    client = fakeredis.FakeRedis(decode_responses=True)
    return AnalysisStore(client, ttl_seconds=ttl_seconds), client


def test_record_round_trip_with_ttl_from_creation():
    store, client = _store()
    created_at = datetime.now(timezone.utc) - timedelta(minutes=10)
    record = _record(created_at)

    assert store.save_record(record) is True

    loaded = store.get_record("an-1")
    assert loaded == record
    remaining_ms = client.pttl("analysis:an-1")
    assert 0 < remaining_ms <= 20 * 60 * 1000


def test_rewrites_never_extend_lifetime():
    store, client = _store(ttl_seconds=60)
    record = _record(datetime.now(timezone.utc) - timedelta(seconds=30))
    store.save_record(record)

    updated = record.model_copy(update={"status": AnalysisStatus.CALLING_AI, "updated_at": datetime.now(timezone.utc)})
    store.save_record(updated)

    assert client.pttl("analysis:an-1") <= 30 * 1000
    assert store.get_record("an-1").status is AnalysisStatus.CALLING_AI


def test_expired_record_is_not_written():
    store, client = _store()
    record = _record(datetime.now(timezone.utc) - timedelta(minutes=31))

    assert store.save_record(record) is False
    assert store.get_record("an-1") is None
    assert client.exists("analysis:an-1") == 0


def test_content_and_session_entries():
    store, _ = _store()
    record = _record(datetime.now(timezone.utc))

    store.save_content(record, "diff --git a/x b/x", is_file_content=False)
    store.remember_session_analysis("session-9", record)

    assert store.get_content("an-1") == ("diff --git a/x b/x", False)
    assert store.get_session_analysis("session-9") == "an-1"
    assert store.get_content("unknown") is None
    assert store.get_session_analysis("other") is None
