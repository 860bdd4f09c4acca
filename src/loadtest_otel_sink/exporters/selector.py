"""Chooses the export backend for the configured exporter type."""

from __future__ import annotations

from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics.export import MetricExporter, PeriodicExportingMetricReader

from loadtest_otel_sink.config import ExporterType, SinkConfig
from loadtest_otel_sink.exporters.file import FileMetricExporter

FILE_EXPORT_INTERVAL_MS = 5000


def build_exporter(config: SinkConfig) -> MetricExporter:
    exporter_type = config.validate_for_init()
    if exporter_type is ExporterType.OTLP:
        return OTLPMetricExporter(endpoint=config.otlp_export_endpoint)
    return FileMetricExporter(config.file_path)


def build_metric_reader(config: SinkConfig) -> PeriodicExportingMetricReader:
    """Wrap the selected exporter in a periodic reader.

    The file backend exports every five seconds; OTLP keeps the SDK's
    default interval.
    """

    exporter = build_exporter(config)
    if isinstance(exporter, FileMetricExporter):
        return PeriodicExportingMetricReader(exporter, export_interval_millis=FILE_EXPORT_INTERVAL_MS)
    return PeriodicExportingMetricReader(exporter)


__all__ = ["FILE_EXPORT_INTERVAL_MS", "build_exporter", "build_metric_reader"]
