from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from clients.python import AnalysisRequest, AsyncReviewerClient, ReviewerClient


def test_client_start_analysis_payload():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["url"] = str(request.url)
        captured["json"] = json.loads(request.content.decode())
        return httpx.Response(202, json={"analysis_id": "an_1", "status": "starting", "status_url": "x"})

    transport = httpx.MockTransport(handler)
    with ReviewerClient("http://example.com/v1", transport=transport) as client:
        request = AnalysisRequest(
            selected_documents=["security"],
            analysis_type="commit",
            commit_id="abc123",
            extra={"session_id": "tab-7"},
        )
        response = client.start_analysis(request)

    assert response["analysis_id"] == "an_1"
    assert captured["method"] == "POST"
    assert captured["url"] == "http://example.com/v1/analysis"
    assert captured["json"] == {
        "selected_documents": ["security"],
        "analysis_type": "commit",
        "commit_id": "abc123",
        "session_id": "tab-7",
    }


def test_client_polls_until_terminal_status():
    statuses = iter(["starting", "calling_ai", "complete"])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"analysis_id": "an_2", "status": next(statuses), "is_complete": False})

    transport = httpx.MockTransport(handler)
    with ReviewerClient("http://example.com/v1", transport=transport) as client:
        final = client.wait_for_completion("an_2", poll_interval=0)

    assert final["status"] == "complete"


def test_client_wait_times_out():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"analysis_id": "an_3", "status": "calling_ai"})

    transport = httpx.MockTransport(handler)
    with ReviewerClient("http://example.com/v1", transport=transport) as client:
        with pytest.raises(TimeoutError):
            client.wait_for_completion("an_3", poll_interval=0, timeout=0)


def test_client_document_query_and_errors():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/results"):
            return httpx.Response(404, json={"detail": "Analysis results not available"})
        captured.update(request.url.params)
        return httpx.Response(200, json={"folder": "Standards", "documents": ["security"]})

    transport = httpx.MockTransport(handler)
    with ReviewerClient("http://example.com/v1", transport=transport) as client:
        documents = client.list_documents(folder="Standards")
        with pytest.raises(httpx.HTTPStatusError):
            client.get_results("an_missing")

    assert captured["folder"] == "Standards"
    assert documents["documents"] == ["security"]


def test_async_client_parses_feedback():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["json"] = json.loads(request.content.decode())
        return httpx.Response(200, json={"feedback": [], "total": 0, "severity_counts": {}})

    async def scenario():
        async with AsyncReviewerClient("http://example.com/v1", transport=httpx.MockTransport(handler)) as client:
            return await client.parse_feedback("Looks good")

    body = asyncio.run(scenario())

    assert body["total"] == 0
    assert captured["url"] == "http://example.com/v1/feedback/parse"
    assert captured["json"] == {"raw_response": "Looks good"}


def test_async_client_wait_for_completion():
    statuses = iter(["loading_documents", "error"])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"analysis_id": "an_4", "status": next(statuses)})

    async def scenario():
        async with AsyncReviewerClient("http://example.com/v1", transport=httpx.MockTransport(handler)) as client:
            return await client.wait_for_completion("an_4", poll_interval=0, timeout=5)

    assert asyncio.run(scenario())["status"] == "error"
