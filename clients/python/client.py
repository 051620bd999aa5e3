from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

import httpx

TERMINAL_STATUSES = frozenset({"complete", "error", "not_found"})


@dataclass
class AnalysisRequest:
    """Convenience wrapper for POST /analysis payloads."""

    selected_documents: List[str]
    analysis_type: str = "uncommitted"
    repository_path: str | None = None
    commit_id: str | None = None
    file_path: str | None = None
    file_content: str | None = None
    documents_folder: str | None = None
    language: str | None = None
    model: str | None = None
    fallback_model: str | None = None
    requirements: str | None = None
    session_id: str | None = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload = {key: value for key, value in asdict(self).items() if key != "extra" and value is not None}
        payload.update(self.extra)
        return payload


class ReviewerClient:
    """Lightweight synchronous client for the AI Code Reviewer API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        headers: Dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        normalized_base = base_url.rstrip("/") + "/"
        self._client = httpx.Client(
            base_url=normalized_base,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    def __enter__(self) -> "ReviewerClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def start_analysis(self, request: AnalysisRequest) -> dict:
        response = self._client.post("analysis", json=request.to_payload())
        response.raise_for_status()
        return response.json()

    def get_status(self, analysis_id: str) -> dict:
        response = self._client.get(f"analysis/{analysis_id}")
        response.raise_for_status()
        return response.json()

    def get_results(self, analysis_id: str) -> dict:
        response = self._client.get(f"analysis/{analysis_id}/results")
        response.raise_for_status()
        return response.json()

    def wait_for_completion(self, analysis_id: str, *, poll_interval: float = 1.0, timeout: float = 120.0) -> dict:
        """Poll the status endpoint until the analysis reaches a terminal state."""

        deadline = time.monotonic() + timeout
        while True:
            status = self.get_status(analysis_id)
            if status.get("status") in TERMINAL_STATUSES:
                return status
            if time.monotonic() >= deadline:
                raise TimeoutError(f"Analysis {analysis_id} did not finish within {timeout} seconds")
            time.sleep(poll_interval)

    def parse_feedback(self, raw_response: str) -> dict:
        response = self._client.post("feedback/parse", json={"raw_response": raw_response})
        response.raise_for_status()
        return response.json()

    def get_session_analysis(self, session_id: str) -> dict:
        response = self._client.get(f"sessions/{session_id}/analysis")
        response.raise_for_status()
        return response.json()

    def list_models(self) -> dict:
        response = self._client.get("models")
        response.raise_for_status()
        return response.json()

    def list_documents(self, folder: str | None = None) -> dict:
        params = {"folder": folder} if folder else None
        response = self._client.get("documents", params=params)
        response.raise_for_status()
        return response.json()

    def healthcheck(self) -> dict:
        response = self._client.get("healthz")
        response.raise_for_status()
        return response.json()
