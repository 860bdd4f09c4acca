"""Export backends for the sink's meter provider."""

from __future__ import annotations

from loadtest_otel_sink.exporters.file import FileMetricExporter, render_metrics
from loadtest_otel_sink.exporters.selector import (
    FILE_EXPORT_INTERVAL_MS,
    build_exporter,
    build_metric_reader,
)

__all__ = [
    "FILE_EXPORT_INTERVAL_MS",
    "FileMetricExporter",
    "build_exporter",
    "build_metric_reader",
    "render_metrics",
]
