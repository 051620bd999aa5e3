"""Telemetry utilities for broadcasting analysis events and exporting metrics."""

from .broker import ProgressBroker
from .event_sink import EventSink, FileEventSink, NullEventSink, WebhookEventSink, sink_from_settings
from .metrics import (
    collect_prometheus_metrics,
    configure_metrics,
    increment_ai_fallback,
    increment_analysis_started,
    record_analysis_duration,
    shutdown_metrics,
)

__all__ = [
    "EventSink",
    "FileEventSink",
    "NullEventSink",
    "WebhookEventSink",
    "ProgressBroker",
    "sink_from_settings",
    "collect_prometheus_metrics",
    "configure_metrics",
    "increment_ai_fallback",
    "increment_analysis_started",
    "record_analysis_duration",
    "shutdown_metrics",
]
