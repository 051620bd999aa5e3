"""Application dependency wiring."""

from __future__ import annotations

from functools import lru_cache

from redis import Redis

from app.core.config import settings
from app.models.domain import AnalysisEnvironment
from app.repositories.redis_store import AnalysisStore
from app.services.ai_client import OpenRouterClient
from app.services.ai_orchestrator import AIOrchestrator
from app.services.analysis import AnalysisCoordinator
from app.services.content_extraction import ContentExtractor
from app.services.documents import DocumentLoader, MarkdownDocumentStore
from app.services.git_diff import GitDiffSource
from app.services.publisher import ResultPublisher
from app.services.validation import RequestValidator
from app.telemetry import EventSink, ProgressBroker, sink_from_settings


@lru_cache
def get_redis_client() -> Redis:
    return Redis.from_url(settings.redis_url, decode_responses=True)


@lru_cache
def get_store() -> AnalysisStore:
    return AnalysisStore(get_redis_client(), ttl_seconds=settings.analysis_ttl_seconds)


@lru_cache
def get_event_sink() -> EventSink:
    return sink_from_settings()


@lru_cache
def get_progress_broker() -> ProgressBroker:
    return ProgressBroker()


@lru_cache
def get_diff_source() -> GitDiffSource:
    return GitDiffSource()


@lru_cache
def get_document_store() -> MarkdownDocumentStore:
    return MarkdownDocumentStore()


@lru_cache
def get_ai_client() -> OpenRouterClient:
    return OpenRouterClient()


@lru_cache
def get_environment() -> AnalysisEnvironment:
    return AnalysisEnvironment.from_settings()


@lru_cache
def get_publisher() -> ResultPublisher:
    return ResultPublisher(get_store(), get_event_sink(), get_progress_broker())


@lru_cache
def get_coordinator() -> AnalysisCoordinator:
    diff_source = get_diff_source()
    return AnalysisCoordinator(
        store=get_store(),
        validator=RequestValidator(diff_source),
        extractor=ContentExtractor(diff_source),
        document_loader=DocumentLoader(get_document_store()),
        orchestrator=AIOrchestrator(get_ai_client()),
        publisher=get_publisher(),
        environment=get_environment(),
    )
