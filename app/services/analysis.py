"""Service orchestration for starting, running and observing code review analyses."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from app.core.identifiers import new_analysis_id
from app.models.domain import (
    PIPELINE_STATUS_ORDER,
    AIModelOutcome,
    AnalysisEnvironment,
    AnalysisRecord,
    AnalysisRequest,
    AnalysisResults,
    AnalysisStatus,
    AnalysisStatusSnapshot,
    AnalysisType,
)
from app.repositories.redis_store import AnalysisStore
from app.services.ai_orchestrator import AIOrchestrator
from app.services.content_extraction import ContentExtractor
from app.services.documents import DocumentLoader
from app.services.feedback_parser import parse_ai_response
from app.services.prompts import resolve_language
from app.services.publisher import ResultPublisher
from app.services.validation import AnalysisValidationError, RequestValidator, ValidatedRequest
from app.telemetry import increment_analysis_started, record_analysis_duration

_logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Analysis not found or expired"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StartAnalysisResult:
    analysis_id: str
    success: bool
    error: Optional[str] = None


class AnalysisTask:
    """Sole writer of one analysis record.

    Status only moves forward through the pipeline order and the record becomes
    terminal exactly once, carrying either a result or an error.
    """

    def __init__(self, record: AnalysisRecord, publisher: ResultPublisher) -> None:
        self._record = record
        self._publisher = publisher

    @property
    def analysis_id(self) -> str:
        return self._record.analysis_id

    @property
    def record(self) -> AnalysisRecord:
        return self._record.model_copy()

    @property
    def is_terminal(self) -> bool:
        return self._record.is_complete

    def mark_file_content(self, is_file_content: bool) -> None:
        self._record.is_file_content = is_file_content

    async def advance(self, status: AnalysisStatus, message: str) -> None:
        self._ensure_open()
        if status not in PIPELINE_STATUS_ORDER:
            raise ValueError(f"{status.value} is not a pipeline status")
        if PIPELINE_STATUS_ORDER.index(status) <= PIPELINE_STATUS_ORDER.index(self._record.status):
            raise ValueError(f"Cannot move analysis from {self._record.status.value} to {status.value}")
        self._record.status = status
        self._record.message = message
        self._record.updated_at = _now()
        await asyncio.to_thread(self._publisher.publish_progress, self.record)

    async def complete(
        self,
        outcome: AIModelOutcome,
        raw_content: str,
        session_id: Optional[str] = None,
    ) -> AnalysisResults:
        self._ensure_open()
        timestamp = _now()
        self._record.status = AnalysisStatus.COMPLETE
        self._record.message = "Analysis complete"
        self._record.result = outcome.analysis
        self._record.error = None
        self._record.model_used = outcome.model_used
        self._record.updated_at = timestamp
        self._record.completed_at = timestamp
        results = AnalysisResults(
            analysis_id=self._record.analysis_id,
            feedback=parse_ai_response(outcome.analysis),
            raw_diff=raw_content,
            raw_response=outcome.analysis,
            model_used=outcome.model_used,
            fallback_model=self._record.fallback_model,
            is_file_content=self._record.is_file_content,
            created_at=self._record.created_at,
        )
        await asyncio.to_thread(self._publisher.publish_complete, self.record, results, session_id)
        return results

    async def fail(self, error: str, model_used: Optional[str] = None) -> None:
        self._ensure_open()
        timestamp = _now()
        self._record.status = AnalysisStatus.ERROR
        self._record.message = error
        self._record.result = None
        self._record.error = error
        if model_used:
            self._record.model_used = model_used
        self._record.updated_at = timestamp
        self._record.completed_at = timestamp
        await asyncio.to_thread(self._publisher.publish_error, self.record)

    def _ensure_open(self) -> None:
        if self._record.is_complete:
            raise RuntimeError(f"Analysis {self._record.analysis_id} already finished as {self._record.status.value}")


class AnalysisCoordinator:
    """Validates requests, launches background analyses and answers status queries."""

    def __init__(
        self,
        store: AnalysisStore,
        validator: RequestValidator,
        extractor: ContentExtractor,
        document_loader: DocumentLoader,
        orchestrator: AIOrchestrator,
        publisher: ResultPublisher,
        environment: AnalysisEnvironment | None = None,
    ) -> None:
        self._store = store
        self._validator = validator
        self._extractor = extractor
        self._document_loader = document_loader
        self._orchestrator = orchestrator
        self._publisher = publisher
        self._environment = environment
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def active_analyses(self) -> list[str]:
        return list(self._tasks)

    async def start_analysis(
        self,
        request: AnalysisRequest,
        environment: AnalysisEnvironment | None = None,
    ) -> StartAnalysisResult:
        env = environment or self._environment or AnalysisEnvironment.from_settings()
        try:
            validated = await asyncio.to_thread(self._validator.validate, request, env)
        except AnalysisValidationError as exc:
            _logger.warning("[RunAnalysis] Validation failed: %s", exc)
            return StartAnalysisResult(analysis_id="", success=False, error=str(exc))

        model = request.model or env.default_model
        fallback_model = request.fallback_model or env.fallback_model
        timestamp = _now()
        record = AnalysisRecord(
            analysis_id=new_analysis_id(),
            status=AnalysisStatus.STARTING,
            message="Starting analysis...",
            created_at=timestamp,
            updated_at=timestamp,
            model_used=model,
            fallback_model=fallback_model,
            is_file_content=request.analysis_type is AnalysisType.SINGLE_FILE,
        )
        await asyncio.to_thread(self._store.save_record, record)

        handle = AnalysisTask(record, self._publisher)
        task = asyncio.create_task(
            self._run(handle, request, validated, env, model, fallback_model),
            name=f"analysis-{record.analysis_id}",
        )
        self._tasks[record.analysis_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(record.analysis_id, None))

        increment_analysis_started(request.analysis_type.value)
        _logger.info("Started analysis %s of type %s", record.analysis_id, request.analysis_type.value)
        return StartAnalysisResult(analysis_id=record.analysis_id, success=True)

    def get_status(self, analysis_id: str) -> AnalysisStatusSnapshot:
        if not analysis_id:
            return AnalysisStatusSnapshot(status=AnalysisStatus.NOT_STARTED, is_complete=False)
        record = self._store.get_record(analysis_id)
        if record is None:
            _logger.warning("Analysis %s not found in cache", analysis_id)
            return AnalysisStatusSnapshot(
                analysis_id=analysis_id,
                status=AnalysisStatus.NOT_FOUND,
                error=NOT_FOUND_MESSAGE,
                is_complete=True,
            )
        return AnalysisStatusSnapshot(
            analysis_id=record.analysis_id,
            status=record.status,
            message=record.message,
            result=record.result,
            error=record.error,
            is_complete=record.is_complete,
            model_used=record.model_used,
        )

    def get_results(self, analysis_id: str) -> Optional[AnalysisResults]:
        """Rebuild structured results for a completed analysis from the cache."""

        record = self._store.get_record(analysis_id) if analysis_id else None
        if record is None or record.status is not AnalysisStatus.COMPLETE:
            return None
        cached = self._store.get_content(analysis_id)
        raw_content, is_file_content = cached if cached else ("", record.is_file_content)
        raw_response = record.result or ""
        return AnalysisResults(
            analysis_id=analysis_id,
            feedback=parse_ai_response(raw_response),
            raw_diff=raw_content,
            raw_response=raw_response,
            model_used=record.model_used,
            fallback_model=record.fallback_model,
            is_file_content=is_file_content,
            created_at=record.created_at,
        )

    async def wait_for_completion(self, analysis_id: str, timeout: float | None = None) -> Optional[AnalysisRecord]:
        """Wait for a running analysis to finish; returns the cached record otherwise."""

        task = self._tasks.get(analysis_id)
        if task is not None:
            return await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        return await asyncio.to_thread(self._store.get_record, analysis_id)

    async def _run(
        self,
        handle: AnalysisTask,
        request: AnalysisRequest,
        validated: ValidatedRequest,
        env: AnalysisEnvironment,
        model: str,
        fallback_model: Optional[str],
    ) -> AnalysisRecord:
        analysis_id = handle.analysis_id
        started = time.perf_counter()
        language = request.language or env.default_language
        documents_folder = request.documents_folder or env.documents_folder
        _logger.info(
            "[Analysis %s] Starting background analysis: repository=%s documents=%s language=%s model=%s fallback=%s",
            analysis_id,
            validated.repository_path,
            ", ".join(request.selected_documents),
            language,
            model,
            fallback_model or "None",
        )

        try:
            await handle.advance(AnalysisStatus.EXTRACTING_CONTENT, "Reading git changes...")
            extracted = await self._extractor.extract(
                validated.repository_path,
                request.analysis_type,
                commit_id=request.commit_id,
                file_path=validated.resolved_file_path or request.file_path,
                file_content=request.file_content,
            )
            if extracted.is_error:
                _logger.error("[Analysis %s] Content extraction failed: %s", analysis_id, extracted.error)
                await handle.fail(extracted.error or "No content extracted")
                return handle.record

            handle.mark_file_content(extracted.is_file_content)
            await asyncio.to_thread(
                self._store.save_content, handle.record, extracted.content, extracted.is_file_content
            )
            _logger.info("[Analysis %s] Content extracted, length %d", analysis_id, len(extracted.content))

            await handle.advance(AnalysisStatus.LOADING_DOCUMENTS, "Loading documents...")
            standards = await self._document_loader.load_all(request.selected_documents, documents_folder)

            await handle.advance(AnalysisStatus.CALLING_AI, f"AI analysis... (Using: {model})")
            requirements = (
                request.requirements
                or f"Follow {resolve_language(language).language_name} best practices and coding standards"
            )
            outcome = await self._orchestrator.analyze(
                extracted.content,
                standards,
                requirements,
                env.api_key,
                model,
                fallback_model,
                language,
                extracted.is_file_content,
            )

            if outcome.success:
                await handle.complete(outcome, extracted.content, session_id=request.session_id)
            else:
                await handle.fail(f"AI analysis failed: {outcome.error}", model_used=outcome.model_used)
        except Exception as exc:
            _logger.exception("[Analysis %s] Unhandled exception in background analysis", analysis_id)
            if not handle.is_terminal:
                try:
                    await handle.fail(f"Analysis error: {exc}")
                except Exception:  # pragma: no cover - cache unavailable
                    _logger.exception("[Analysis %s] Failed to publish error status", analysis_id)
        finally:
            record = handle.record
            record_analysis_duration(time.perf_counter() - started, record.status.value)
            _logger.info("[Analysis %s] Background analysis finished as %s", analysis_id, record.status.value)

        return handle.record
