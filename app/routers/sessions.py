"""API routes resolving a caller session to its most recent analysis."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.config import settings
from app.dependencies import get_store
from app.repositories.redis_store import AnalysisStore
from app.routers.analysis import status_url
from app.schemas.analysis import SessionAnalysisResponse


router = APIRouter(prefix=f"{settings.api_v1_prefix}/sessions", tags=["sessions"])


@router.get("/{session_id}/analysis", response_model=SessionAnalysisResponse)
def get_session_analysis(
    session_id: str,
    store: AnalysisStore = Depends(get_store),
) -> SessionAnalysisResponse:
    analysis_id = store.get_session_analysis(session_id)
    if not analysis_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No completed analysis for session")
    return SessionAnalysisResponse(
        session_id=session_id,
        analysis_id=analysis_id,
        status_url=status_url(analysis_id),
    )
