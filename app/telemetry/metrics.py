"""OpenTelemetry metrics instrumentation helpers."""

from __future__ import annotations

import logging

from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from app.core.config import settings

_logger = logging.getLogger(__name__)

_metrics_enabled = False
_meter = None
_provider: MeterProvider | None = None
_analysis_duration_hist = None
_ai_fallback_counter = None
_analysis_started_counter = None


def configure_metrics() -> None:
    """Initialise the metrics provider if enabled via settings."""

    global _metrics_enabled, _meter, _analysis_duration_hist, _ai_fallback_counter, _analysis_started_counter, _provider

    if not settings.otel_enabled:
        return
    if _metrics_enabled:
        return

    exporter_name = settings.otel_exporter.lower().strip()
    metric_readers = []

    if exporter_name == "console":
        exporter = ConsoleMetricExporter()
        metric_readers.append(PeriodicExportingMetricReader(exporter))
    elif exporter_name == "prometheus":
        try:
            from opentelemetry.exporter.prometheus import PrometheusMetricReader  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "Prometheus exporter selected but opentelemetry-exporter-prometheus is not installed."
            ) from exc
        metric_readers.append(PrometheusMetricReader())
    elif exporter_name == "otlp":
        try:
            from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "OTLP exporter selected but opentelemetry-exporter-otlp is not installed."
            ) from exc
        endpoint = settings.otel_otlp_endpoint
        exporter = OTLPMetricExporter(endpoint=endpoint) if endpoint else OTLPMetricExporter()
        metric_readers.append(PeriodicExportingMetricReader(exporter))
    else:
        _logger.warning("Unsupported OTEL exporter '%s'; defaulting to console", exporter_name)
        metric_readers.append(PeriodicExportingMetricReader(ConsoleMetricExporter()))

    _provider = MeterProvider(metric_readers=metric_readers, resource=Resource.create({"service.name": "ai-code-reviewer"}))
    metrics.set_meter_provider(_provider)
    _meter = metrics.get_meter("ai-code-reviewer")
    _analysis_duration_hist = _meter.create_histogram(
        name="reviewer.analysis.duration",
        unit="s",
        description="Background analysis duration in seconds",
    )
    _ai_fallback_counter = _meter.create_counter(
        name="reviewer.ai.fallbacks",
        unit="1",
        description="AI calls retried against the fallback model",
    )
    _analysis_started_counter = _meter.create_counter(
        name="reviewer.analysis.started",
        unit="1",
        description="Analyses accepted for background execution",
    )
    _metrics_enabled = True


def record_analysis_duration(seconds: float, outcome: str) -> None:
    if _metrics_enabled and _analysis_duration_hist is not None:
        _analysis_duration_hist.record(max(seconds, 0.0), {"outcome": outcome})


def increment_ai_fallback(model: str) -> None:
    if _metrics_enabled and _ai_fallback_counter is not None:
        _ai_fallback_counter.add(1, {"model": model})


def increment_analysis_started(analysis_type: str) -> None:
    if _metrics_enabled and _analysis_started_counter is not None:
        _analysis_started_counter.add(1, {"analysis_type": analysis_type})


def shutdown_metrics() -> None:
    global _metrics_enabled, _provider
    if _metrics_enabled and _provider is not None:
        try:
            _provider.shutdown()
        except Exception:  # pragma: no cover - exporter shutdown failure
            _logger.exception("Failed to shutdown metrics provider")
        finally:
            _metrics_enabled = False
            _provider = None


def collect_prometheus_metrics() -> tuple[bytes, str]:
    """Render the Prometheus exposition payload and its content type."""

    try:
        from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("Prometheus exporter selected but prometheus-client is not installed.") from exc
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
