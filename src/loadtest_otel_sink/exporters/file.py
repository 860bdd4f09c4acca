"""Metric exporter that appends human-readable snapshots to a text file."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from opentelemetry.sdk.metrics.export import (
    ExponentialHistogram,
    Gauge,
    Histogram,
    Metric,
    MetricExporter,
    MetricExportResult,
    MetricsData,
    Sum,
)

logger = logging.getLogger(__name__)


def _format_value(metric: Metric, point: Any) -> str:
    data = metric.data
    if isinstance(data, Sum):
        return f"Sum: {point.value}"
    if isinstance(data, Gauge):
        return f"Gauge: {point.value}"
    if isinstance(data, (Histogram, ExponentialHistogram)):
        return f"Histogram - Count: {point.count}, Sum: {point.sum}"
    return f"Unknown metric type: {type(data).__name__}"


def _format_tags(attributes: Mapping[str, Any] | None) -> str:
    if not attributes:
        return "Tags: "
    return "Tags: " + ", ".join(f"{key}={value}" for key, value in attributes.items())


def render_metrics(metrics_data: MetricsData, *, now: datetime | None = None) -> str:
    """Render one export batch as the text block written to the file."""

    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    lines = [f"[{timestamp}] Metrics Export:"]

    for resource_metrics in metrics_data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                lines.append(f"  Metric: {metric.name} ({metric.description})")
                lines.append("  Data Points:")
                for point in metric.data.data_points:
                    try:
                        value = _format_value(metric, point)
                    except Exception as exc:
                        value = f"Error getting value: {exc}"
                    lines.append(f"    - {value} | {_format_tags(point.attributes)}")
                lines.append("  Metrics exported")

    return "\n".join(lines) + "\n"


class FileMetricExporter(MetricExporter):
    """Appends each export batch to ``file_path``.

    Failures are logged and reported as ``MetricExportResult.FAILURE``; they
    never propagate into the load test. Concurrent exports to the same file
    are not serialised here.
    """

    def __init__(self, file_path: str | Path) -> None:
        super().__init__()
        self._file_path = Path(file_path)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10_000,
        **kwargs: Any,
    ) -> MetricExportResult:
        try:
            block = render_metrics(metrics_data)
            with open(self._file_path, "a", encoding="utf-8") as fh:
                fh.write(block)
        except Exception as exc:
            logger.error(
                "Error exporting metrics to file: %s",
                exc,
                extra={"event": "sink.export.failed", "file_path": str(self._file_path)},
            )
            return MetricExportResult.FAILURE
        return MetricExportResult.SUCCESS

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        return True

    def shutdown(self, timeout_millis: float = 30_000, **kwargs: Any) -> None:
        return None


__all__ = ["FileMetricExporter", "render_metrics"]
