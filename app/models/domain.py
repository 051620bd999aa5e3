"""Domain data models for the code review analysis service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from app.core.config import settings


class AnalysisType(str, Enum):
    """Which subset of repository content is under review."""

    UNCOMMITTED = "uncommitted"
    STAGED = "staged"
    COMMIT = "commit"
    SINGLE_FILE = "single_file"

    @property
    def is_git_scope(self) -> bool:
        return self is not AnalysisType.SINGLE_FILE


class AnalysisStatus(str, Enum):
    """Processing lifecycle states for an analysis, plus polling-only states."""

    NOT_STARTED = "not_started"
    NOT_FOUND = "not_found"
    STARTING = "starting"
    EXTRACTING_CONTENT = "extracting_content"
    LOADING_DOCUMENTS = "loading_documents"
    CALLING_AI = "calling_ai"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (AnalysisStatus.COMPLETE, AnalysisStatus.ERROR, AnalysisStatus.NOT_FOUND)


# Order in which a background task may advance; no state is re-entered.
PIPELINE_STATUS_ORDER: tuple[AnalysisStatus, ...] = (
    AnalysisStatus.STARTING,
    AnalysisStatus.EXTRACTING_CONTENT,
    AnalysisStatus.LOADING_DOCUMENTS,
    AnalysisStatus.CALLING_AI,
)


class Severity(str, Enum):
    """Severity scale for review feedback."""

    CRITICAL = "critical"
    WARNING = "warning"
    STYLE = "style"
    SUGGESTION = "suggestion"


class Category(str, Enum):
    """Broad category a piece of feedback belongs to."""

    SECURITY = "security"
    PERFORMANCE = "performance"
    STYLE = "style"
    ERROR_HANDLING = "error_handling"
    GENERAL = "general"


class AnalysisRequest(BaseModel):
    """Everything needed to launch one review of repository content."""

    repository_path: Optional[str] = Field(
        None, description="Path to the git repository; defaults to the configured repository."
    )
    analysis_type: AnalysisType = AnalysisType.UNCOMMITTED
    commit_id: Optional[str] = Field(None, description="Required when analysis_type is 'commit'.")
    file_path: Optional[str] = Field(None, description="Required when analysis_type is 'single_file'.")
    file_content: Optional[str] = Field(
        None,
        description="Inline file content for single-file reviews; skips filesystem resolution.",
    )
    selected_documents: list[str] = Field(default_factory=list)
    documents_folder: Optional[str] = None
    language: Optional[str] = None
    model: Optional[str] = Field(None, description="Primary model id; defaults to the configured model.")
    fallback_model: Optional[str] = Field(
        None, description="Model retried once when the primary is rate limited."
    )
    requirements: Optional[str] = None
    session_id: Optional[str] = Field(
        None, description="Opaque caller session; remembered against the analysis on completion."
    )


class AnalysisRecord(BaseModel):
    """Mutable state tracked per analysis id."""

    analysis_id: str
    status: AnalysisStatus
    message: str = ""
    result: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    model_used: Optional[str] = None
    fallback_model: Optional[str] = None
    is_file_content: bool = False

    @property
    def is_complete(self) -> bool:
        return self.status in (AnalysisStatus.COMPLETE, AnalysisStatus.ERROR)


class ExtractedContent(BaseModel):
    """Text obtained for review, or the reason it could not be obtained."""

    content: str = ""
    is_file_content: bool = False
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class FeedbackItem(BaseModel):
    """One parsed review finding."""

    severity: Severity = Severity.SUGGESTION
    category: Category = Category.GENERAL
    message: str = ""
    suggestion: Optional[str] = None
    file_path: Optional[str] = None
    line_number: Optional[int] = Field(None, ge=1)


class AIModelOutcome(BaseModel):
    """Result of calling the AI service, including which model answered."""

    success: bool
    analysis: str = ""
    error: Optional[str] = None
    model_used: str


class AnalysisResults(BaseModel):
    """Structured payload broadcast on completion and served for retrieval."""

    analysis_id: str
    feedback: list[FeedbackItem] = Field(default_factory=list)
    raw_diff: str = ""
    raw_response: str = ""
    model_used: Optional[str] = None
    fallback_model: Optional[str] = None
    is_file_content: bool = False
    created_at: datetime


class AnalysisStatusSnapshot(BaseModel):
    """Point-in-time view of an analysis for pollers."""

    analysis_id: Optional[str] = None
    status: AnalysisStatus
    message: str = ""
    result: Optional[str] = None
    error: Optional[str] = None
    is_complete: bool
    model_used: Optional[str] = None


class ModelInfo(BaseModel):
    """Display metadata for an AI model."""

    id: str
    name: str
    provider: str = "Unknown"
    description: str = "AI model for code analysis"
    icon: str = "🤖"


@dataclass(frozen=True)
class AnalysisEnvironment:
    """Process-level defaults an analysis falls back to when a request leaves them out."""

    api_key: str
    default_model: str
    fallback_model: Optional[str] = None
    repository_path: str = "."
    documents_folder: str = "Documents"
    default_language: str = "NET"

    @classmethod
    def from_settings(cls) -> "AnalysisEnvironment":
        return cls(
            api_key=settings.openrouter_api_key,
            default_model=settings.openrouter_model,
            fallback_model=settings.openrouter_fallback_model,
            repository_path=settings.repository_path,
            documents_folder=settings.documents_folder,
            default_language=settings.default_language,
        )
