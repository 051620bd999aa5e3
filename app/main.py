"""Application entrypoint for the AI Code Reviewer service."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from app.core.config import settings
from app.core.logging import configure_logging
from app.dependencies import get_ai_client, get_coordinator, get_event_sink
from app.routers import analysis, documents, feedback, models, sessions
from app.telemetry import collect_prometheus_metrics, configure_metrics, shutdown_metrics


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    configure_metrics()
    yield
    # The AI client's connection pool is bound to this event loop.
    await get_ai_client().close()
    get_coordinator.cache_clear()
    get_ai_client.cache_clear()
    sink = get_event_sink()
    if hasattr(sink, "close"):
        sink.close()
    shutdown_metrics()


def create_app() -> FastAPI:
    app = FastAPI(
        title="AI Code Reviewer",
        description="Reviews git changes and source files against coding standards with an AI model.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(analysis.router)
    app.include_router(feedback.router)
    app.include_router(sessions.router)
    app.include_router(models.router)
    app.include_router(documents.router)

    @app.get("/healthz", tags=["health"])
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    if settings.otel_exporter.lower().strip() == "prometheus":

        @app.get("/metrics", tags=["metrics"])
        def metrics_endpoint() -> PlainTextResponse:
            payload, content_type = collect_prometheus_metrics()
            return PlainTextResponse(payload, media_type=content_type)

    return app


app = create_app()
