"""API routes listing available coding standard documents."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.core.config import settings
from app.dependencies import get_document_store, get_environment
from app.models.domain import AnalysisEnvironment
from app.schemas.analysis import DocumentsResponse
from app.services.documents import MarkdownDocumentStore


router = APIRouter(prefix=f"{settings.api_v1_prefix}/documents", tags=["documents"])


@router.get("", response_model=DocumentsResponse)
def list_documents(
    folder: str | None = Query(None, description="Folder holding markdown standards; defaults to the configured one."),
    store: MarkdownDocumentStore = Depends(get_document_store),
    environment: AnalysisEnvironment = Depends(get_environment),
) -> DocumentsResponse:
    resolved = folder or environment.documents_folder
    return DocumentsResponse(folder=resolved, documents=store.list_documents(resolved))
