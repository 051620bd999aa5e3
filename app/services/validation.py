"""Synchronous request validation performed before an analysis is accepted."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from app.core.config import settings
from app.models.domain import AnalysisEnvironment, AnalysisRequest, AnalysisType
from app.services.git_diff import DiffSource

_logger = logging.getLogger(__name__)


class AnalysisValidationError(ValueError):
    """Raised when a request cannot start an analysis; the message is user-facing."""


@dataclass(frozen=True)
class ValidatedRequest:
    repository_path: str
    resolved_file_path: Optional[str] = None


class RequestValidator:
    """Checks configuration, document selection and scope-specific preconditions."""

    def __init__(self, diff_source: DiffSource, allowed_extensions: list[str] | None = None) -> None:
        self._diff_source = diff_source
        self._allowed_extensions = [ext.lower() for ext in (allowed_extensions or settings.allowed_file_extensions)]

    def validate(self, request: AnalysisRequest, environment: AnalysisEnvironment) -> ValidatedRequest:
        try:
            return self._validate(request, environment)
        except AnalysisValidationError:
            raise
        except Exception as exc:
            _logger.exception("[Validation] Unexpected error during request validation")
            raise AnalysisValidationError(f"Validation error: {exc}") from exc

    def _validate(self, request: AnalysisRequest, environment: AnalysisEnvironment) -> ValidatedRequest:
        if not environment.api_key or not environment.api_key.strip():
            raise AnalysisValidationError("API key not configured")
        if not request.selected_documents:
            raise AnalysisValidationError("No coding standards selected")

        repository_path = request.repository_path or environment.repository_path

        if request.analysis_type is AnalysisType.SINGLE_FILE:
            if not request.file_path:
                raise AnalysisValidationError("File path is required for single file analysis")
            if request.file_content:
                _logger.info("[Validation] Inline file content supplied, skipping filesystem checks")
                return ValidatedRequest(repository_path=repository_path, resolved_file_path=request.file_path)
            resolved = self.resolve_file_path(request.file_path, repository_path)
            self._check_extension(resolved)
            return ValidatedRequest(repository_path=repository_path, resolved_file_path=str(resolved))

        is_valid, error = self._diff_source.validate_repository(repository_path)
        if not is_valid:
            raise AnalysisValidationError(error or "Invalid repository")
        if request.analysis_type is AnalysisType.COMMIT and not request.commit_id:
            raise AnalysisValidationError("Commit ID is required for commit analysis")
        if request.analysis_type is AnalysisType.STAGED and not self._diff_source.has_staged_changes(repository_path):
            raise AnalysisValidationError("No staged changes found. Use 'git add' to stage files for analysis.")
        return ValidatedRequest(repository_path=repository_path)

    def resolve_file_path(self, file_path: str, repository_path: str) -> Path:
        """Locate a file given as a bare name, a repository-relative path or an absolute path.

        Bare names are searched in the repository root, its first-level
        subdirectories and the working directory, in that order.
        """

        candidate = Path(file_path)
        if not any(sep in file_path for sep in ("/", "\\")):
            for directory in self._search_directories(repository_path):
                match = directory / file_path
                if match.is_file():
                    return match
            raise AnalysisValidationError(
                f"File '{file_path}' not found. Please provide the full file path or ensure the file "
                f"is in the repository directory: {repository_path}"
            )

        if not candidate.is_absolute():
            relative = Path(repository_path) / candidate
            if relative.is_file():
                return relative
        if not candidate.is_file():
            raise AnalysisValidationError(
                f"File not found: {file_path}. Please verify the file path is correct and the file exists. "
                f"If using a relative path, ensure it's relative to the repository root: {repository_path}"
            )
        return candidate

    def _search_directories(self, repository_path: str) -> list[Path]:
        directories: list[Path] = []
        root = Path(repository_path)
        if root.is_dir():
            directories.append(root)
            try:
                directories.extend(sorted(path for path in root.iterdir() if path.is_dir()))
            except OSError as exc:
                _logger.warning("Could not enumerate subdirectories in %s: %s", repository_path, exc)
        directories.append(Path(os.getcwd()))
        return directories

    def _check_extension(self, path: Path) -> None:
        extension = path.suffix.lower()
        if extension not in self._allowed_extensions:
            raise AnalysisValidationError(
                f"Unsupported file type '{extension}'. Allowed extensions: {', '.join(self._allowed_extensions)}"
            )
