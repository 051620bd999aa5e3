"""API routes for structuring free-form AI review text."""

from __future__ import annotations

from collections import Counter

from fastapi import APIRouter

from app.core.config import settings
from app.schemas.analysis import FeedbackParseRequest, FeedbackParseResponse
from app.services.feedback_parser import parse_ai_response


router = APIRouter(prefix=f"{settings.api_v1_prefix}/feedback", tags=["feedback"])


@router.post("/parse", response_model=FeedbackParseResponse)
def parse_feedback(payload: FeedbackParseRequest) -> FeedbackParseResponse:
    feedback = parse_ai_response(payload.raw_response)
    return FeedbackParseResponse(
        feedback=feedback,
        total=len(feedback),
        severity_counts=dict(Counter(item.severity for item in feedback)),
    )
