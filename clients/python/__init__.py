"""Python client stubs for interacting with the AI Code Reviewer API."""

from .client import AnalysisRequest, ReviewerClient
from .async_client import AsyncReviewerClient

__all__ = ["ReviewerClient", "AnalysisRequest", "AsyncReviewerClient"]
