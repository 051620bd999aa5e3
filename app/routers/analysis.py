"""API routes for starting analyses and observing their progress."""

from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from app.core.config import settings
from app.dependencies import get_coordinator, get_progress_broker
from app.models.domain import AnalysisRequest, AnalysisResults, AnalysisStatus
from app.schemas.analysis import AnalysisStartResponse, AnalysisStatusResponse
from app.services.analysis import AnalysisCoordinator
from app.telemetry import ProgressBroker


router = APIRouter(prefix=f"{settings.api_v1_prefix}/analysis", tags=["analysis"])

_KEEPALIVE_SECONDS = 15.0
_TERMINAL_EVENTS = {"complete", "error"}


def status_url(analysis_id: str) -> str:
    return f"{settings.service_base_url}{settings.api_v1_prefix}/analysis/{analysis_id}"


def _format_sse(event_type: str, payload: dict) -> str:
    return f"event: {event_type}\ndata: {json.dumps(payload, default=str)}\n\n"


@router.post("", response_model=AnalysisStartResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_analysis(
    payload: AnalysisRequest,
    coordinator: AnalysisCoordinator = Depends(get_coordinator),
) -> AnalysisStartResponse:
    outcome = await coordinator.start_analysis(payload)
    if not outcome.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=outcome.error)
    return AnalysisStartResponse(
        analysis_id=outcome.analysis_id,
        status=AnalysisStatus.STARTING,
        status_url=status_url(outcome.analysis_id),
    )


@router.get("/{analysis_id}", response_model=AnalysisStatusResponse)
def get_analysis_status(
    analysis_id: str,
    coordinator: AnalysisCoordinator = Depends(get_coordinator),
) -> AnalysisStatusResponse:
    snapshot = coordinator.get_status(analysis_id)
    return AnalysisStatusResponse(**snapshot.model_dump())


@router.get("/{analysis_id}/results", response_model=AnalysisResults)
def get_analysis_results(
    analysis_id: str,
    coordinator: AnalysisCoordinator = Depends(get_coordinator),
) -> AnalysisResults:
    results = coordinator.get_results(analysis_id)
    if results is not None:
        return results
    snapshot = coordinator.get_status(analysis_id)
    if snapshot.status is AnalysisStatus.ERROR:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=snapshot.error)
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis results not available")


@router.get("/{analysis_id}/events")
async def stream_analysis_events(
    analysis_id: str,
    coordinator: AnalysisCoordinator = Depends(get_coordinator),
    broker: ProgressBroker = Depends(get_progress_broker),
) -> StreamingResponse:
    # Subscribe before reading the snapshot so no event falls between the two.
    queue = broker.subscribe(analysis_id)
    snapshot = await asyncio.to_thread(coordinator.get_status, analysis_id)

    async def event_stream():
        try:
            yield _format_sse("snapshot", snapshot.model_dump(mode="json"))
            if snapshot.is_complete:
                return
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=_KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield _format_sse(event["type"], event)
                if event["type"] in _TERMINAL_EVENTS:
                    return
        finally:
            broker.unsubscribe(analysis_id, queue)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
