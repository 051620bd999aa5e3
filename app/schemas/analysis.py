"""API schemas for starting analyses, polling them and retrieving feedback."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from app.models.domain import AnalysisStatus, FeedbackItem, ModelInfo, Severity


class AnalysisStartResponse(BaseModel):
    """Response body acknowledging an accepted analysis."""

    analysis_id: str
    status: AnalysisStatus
    status_url: str


class AnalysisStatusResponse(BaseModel):
    """Response body for polling analysis status."""

    analysis_id: Optional[str] = None
    status: AnalysisStatus
    message: str = ""
    result: Optional[str] = None
    error: Optional[str] = None
    is_complete: bool
    model_used: Optional[str] = None


class FeedbackParseRequest(BaseModel):
    """Request body for POST /v1/feedback/parse."""

    raw_response: str = Field(..., description="Free-form AI review text to structure.")


class FeedbackParseResponse(BaseModel):
    feedback: list[FeedbackItem] = Field(default_factory=list)
    total: int = 0
    severity_counts: dict[Severity, int] = Field(default_factory=dict)


class SessionAnalysisResponse(BaseModel):
    session_id: str
    analysis_id: str
    status_url: str


class ModelEntry(ModelInfo):
    is_primary: bool = False
    is_fallback: bool = False


class ModelsResponse(BaseModel):
    """Configured AI model catalogue."""

    models: list[ModelEntry] = Field(default_factory=list)
    primary_model: str
    fallback_model: Optional[str] = None


class DocumentsResponse(BaseModel):
    folder: str
    documents: list[str] = Field(default_factory=list)
