from __future__ import annotations

import asyncio
from typing import Dict

import httpx

from .client import TERMINAL_STATUSES, AnalysisRequest


class AsyncReviewerClient:
    """Async variant of the AI Code Reviewer API client."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        headers: Dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        normalized_base = base_url.rstrip("/") + "/"
        self._client = httpx.AsyncClient(
            base_url=normalized_base,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "AsyncReviewerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def start_analysis(self, request: AnalysisRequest) -> dict:
        response = await self._client.post("analysis", json=request.to_payload())
        response.raise_for_status()
        return response.json()

    async def get_status(self, analysis_id: str) -> dict:
        response = await self._client.get(f"analysis/{analysis_id}")
        response.raise_for_status()
        return response.json()

    async def get_results(self, analysis_id: str) -> dict:
        response = await self._client.get(f"analysis/{analysis_id}/results")
        response.raise_for_status()
        return response.json()

    async def wait_for_completion(
        self, analysis_id: str, *, poll_interval: float = 1.0, timeout: float = 120.0
    ) -> dict:
        async def poll() -> dict:
            while True:
                status = await self.get_status(analysis_id)
                if status.get("status") in TERMINAL_STATUSES:
                    return status
                await asyncio.sleep(poll_interval)

        return await asyncio.wait_for(poll(), timeout=timeout)

    async def parse_feedback(self, raw_response: str) -> dict:
        response = await self._client.post("feedback/parse", json={"raw_response": raw_response})
        response.raise_for_status()
        return response.json()

    async def list_models(self) -> dict:
        response = await self._client.get("models")
        response.raise_for_status()
        return response.json()

    async def healthcheck(self) -> dict:
        response = await self._client.get("healthz")
        response.raise_for_status()
        return response.json()
