"""OpenTelemetry reporting sink for load-test statistics."""

from __future__ import annotations

from loadtest_otel_sink.config import (
    CustomTag,
    ExporterType,
    SinkConfig,
    load_infra_config,
    resolve_sink_config,
)
from loadtest_otel_sink.errors import (
    MissingContextError,
    SinkConfigurationError,
    SinkError,
    SinkLifecycleError,
)
from loadtest_otel_sink.lifecycle import SinkState
from loadtest_otel_sink.sink import OtelSink

__all__ = [
    "CustomTag",
    "ExporterType",
    "SinkConfig",
    "load_infra_config",
    "resolve_sink_config",
    "MissingContextError",
    "SinkConfigurationError",
    "SinkError",
    "SinkLifecycleError",
    "SinkState",
    "OtelSink",
]
