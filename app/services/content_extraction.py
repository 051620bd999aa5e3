"""Extraction of the text under review for each analysis scope."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from app.models.domain import AnalysisType, ExtractedContent
from app.services.git_diff import DiffSource

_logger = logging.getLogger(__name__)

NO_FILE_CONTENT_MESSAGE = "No file content to analyze"


class ContentExtractor:
    """Resolves an analysis scope into content, never raising to the caller."""

    def __init__(self, diff_source: DiffSource) -> None:
        self._diff_source = diff_source

    async def extract(
        self,
        repository_path: str,
        analysis_type: AnalysisType,
        commit_id: str | None = None,
        file_path: str | None = None,
        file_content: str | None = None,
    ) -> ExtractedContent:
        try:
            if analysis_type is AnalysisType.SINGLE_FILE:
                return await self._extract_file(file_path, file_content)
            return await self._extract_diff(repository_path, analysis_type, commit_id)
        except Exception as exc:
            _logger.exception("Content extraction failed for %s analysis", analysis_type.value)
            return ExtractedContent(error=f"Content extraction failed: {exc}")

    async def _extract_file(self, file_path: str | None, file_content: str | None) -> ExtractedContent:
        if file_content:
            text = file_content
        elif file_path:
            try:
                text = await asyncio.to_thread(Path(file_path).read_text, encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                _logger.warning("Unable to read file %s for analysis", file_path)
                text = ""
        else:
            text = ""
        if not text.strip():
            return ExtractedContent(is_file_content=True, error=NO_FILE_CONTENT_MESSAGE)
        return ExtractedContent(content=text, is_file_content=True)

    async def _extract_diff(
        self,
        repository_path: str,
        analysis_type: AnalysisType,
        commit_id: str | None,
    ) -> ExtractedContent:
        if analysis_type is AnalysisType.COMMIT:
            if not commit_id:
                return ExtractedContent(error="Invalid input parameters for the selected analysis type")
            text, error = await asyncio.to_thread(self._diff_source.get_commit_diff, repository_path, commit_id)
        elif analysis_type is AnalysisType.STAGED:
            text, error = await asyncio.to_thread(self._diff_source.get_staged_diff, repository_path)
        else:
            text, error = await asyncio.to_thread(self._diff_source.get_uncommitted_diff, repository_path)

        if error:
            return ExtractedContent(error=error)
        if not text or not text.strip():
            return ExtractedContent(error="No content extracted")
        return ExtractedContent(content=text)
