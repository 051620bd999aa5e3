"""Redis-backed TTL cache for analysis state."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Optional

from redis import Redis

from app.models.domain import AnalysisRecord


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisStore:
    """Stores analysis records and their raw content with a fixed expiry.

    Every key belonging to an analysis expires ``ttl_seconds`` after the record
    was created; rewriting a record never extends its lifetime.
    """

    def __init__(self, client: Redis, ttl_seconds: int = 1800) -> None:
        self._client = client
        self._ttl = timedelta(seconds=ttl_seconds)

    @property
    def ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    def save_record(self, record: AnalysisRecord) -> bool:
        """Write the record snapshot; returns False when its lifetime already elapsed."""

        return self._set(self._record_key(record.analysis_id), record.model_dump_json(), record.created_at)

    def get_record(self, analysis_id: str) -> Optional[AnalysisRecord]:
        data = self._client.get(self._record_key(analysis_id))
        if not data:
            return None
        return AnalysisRecord.model_validate_json(data)

    def save_content(self, record: AnalysisRecord, content: str, is_file_content: bool) -> bool:
        payload = json.dumps({"content": content, "is_file_content": is_file_content})
        return self._set(self._content_key(record.analysis_id), payload, record.created_at)

    def get_content(self, analysis_id: str) -> Optional[tuple[str, bool]]:
        data = self._client.get(self._content_key(analysis_id))
        if not data:
            return None
        payload = json.loads(data)
        return payload.get("content", ""), bool(payload.get("is_file_content", False))

    def remember_session_analysis(self, session_id: str, record: AnalysisRecord) -> bool:
        return self._set(self._session_key(session_id), record.analysis_id, record.created_at)

    def get_session_analysis(self, session_id: str) -> Optional[str]:
        value = self._client.get(self._session_key(session_id))
        return value or None

    def _set(self, key: str, value: str, created_at: datetime) -> bool:
        remaining = (created_at + self._ttl) - _now()
        remaining_ms = int(remaining.total_seconds() * 1000)
        if remaining_ms <= 0:
            return False
        self._client.set(key, value, px=remaining_ms)
        return True

    @staticmethod
    def _record_key(analysis_id: str) -> str:
        return f"analysis:{analysis_id}"

    @staticmethod
    def _content_key(analysis_id: str) -> str:
        return f"analysis:{analysis_id}:content"

    @staticmethod
    def _session_key(session_id: str) -> str:
        return f"session:{session_id}:analysis"
