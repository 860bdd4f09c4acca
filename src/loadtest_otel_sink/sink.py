"""OpenTelemetry reporting sink for load-test statistics."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.resources import Resource

from loadtest_otel_sink.config import CustomTag, SinkConfig, resolve_sink_config
from loadtest_otel_sink.contracts import (
    BaseContext,
    MetricStats,
    NodeStats,
    ScenarioStats,
    SessionStartInfo,
)
from loadtest_otel_sink.errors import MissingContextError, SinkLifecycleError
from loadtest_otel_sink.exporters.selector import build_metric_reader
from loadtest_otel_sink.lifecycle import SinkLifecycle, SinkState
from loadtest_otel_sink.telemetry.instruments import METER_NAME, METER_VERSION, SinkInstruments
from loadtest_otel_sink.telemetry.mapper import MetricMapper
from loadtest_otel_sink.telemetry.tags import TagBuilder

logger = logging.getLogger(__name__)


class OtelSink:
    """Reporting sink that forwards load-test statistics to OpenTelemetry.

    The host calls the hooks in order: ``init``, ``start``, any number of
    ``save_realtime_stats`` / ``save_realtime_metrics``, ``save_final_stats``
    and finally ``stop``. Hooks are coroutines to match the host's async
    contract; none of them do asynchronous work of their own.

    The sink owns its ``MeterProvider`` and never installs it globally.
    """

    def __init__(self, config: Optional[SinkConfig] = None) -> None:
        self._explicit_config = config
        self._config: SinkConfig = config or SinkConfig()
        self._context: Optional[BaseContext] = None
        self._log: logging.Logger = logger
        self._meter_provider: Optional[MeterProvider] = None
        self._mapper: Optional[MetricMapper] = None
        self._lifecycle = SinkLifecycle(self.sink_name)

    @property
    def sink_name(self) -> str:
        return METER_NAME

    @property
    def config(self) -> SinkConfig:
        return self._config

    @property
    def custom_tags(self) -> Sequence[CustomTag]:
        return tuple(self._config.custom_tags)

    @property
    def state(self) -> SinkState:
        return self._lifecycle.state

    async def init(self, context: BaseContext, infra_config: Optional[Mapping[str, Any]] = None) -> None:
        """Resolve configuration, select the export backend and build instruments.

        Raises :class:`SinkConfigurationError` for an unknown exporter type,
        a file exporter without a path, or a reserved/duplicate custom tag key.
        Nothing is built when validation fails.
        """

        if self._lifecycle.state is not SinkState.UNINITIALIZED:
            raise SinkLifecycleError(f"{self.sink_name} is already initialized ({self._lifecycle.state.value}).")

        self._context = context
        self._log = getattr(context, "logger", None) or logger

        config = resolve_sink_config(self._explicit_config, infra_config)
        self._log.info(
            "Initializing %s with configuration: %s",
            self.sink_name,
            config.describe(),
            extra={"event": "sink.init"},
        )
        reader = build_metric_reader(config)

        provider = MeterProvider(
            metric_readers=[reader],
            resource=Resource.create({"service.name": self.sink_name}),
        )
        instruments = SinkInstruments(provider.get_meter(METER_NAME, METER_VERSION))

        self._config = config
        self._meter_provider = provider
        self._mapper = MetricMapper(instruments, TagBuilder(context, config.custom_tags))
        self._lifecycle.transition_to(SinkState.CONFIGURED)

        self._log.info("Configured %s successfully.", self.sink_name, extra={"event": "sink.configured"})

    async def start(self, session_info: SessionStartInfo) -> None:
        mapper = self._require_mapper("start")
        node_info = self._context.get_node_info() if self._context is not None else None
        if node_info is None:
            raise MissingContextError("NodeInfo")
        mapper.record_node_info(node_info)

    async def save_realtime_stats(self, stats: Sequence[ScenarioStats]) -> None:
        self._save_scenario_stats(stats, "save_realtime_stats")

    async def save_final_stats(self, stats: NodeStats) -> None:
        self._save_scenario_stats(stats.scenario_stats, "save_final_stats")

    async def save_realtime_metrics(self, metrics: MetricStats) -> None:
        mapper = self._require_mapper("save_realtime_metrics")
        mapper.map_metric_stats(metrics)

    async def stop(self) -> None:
        """Flush pending data and shut the export backend down.

        Calling it again, or without a backend, does nothing.
        """

        provider = self._meter_provider
        if provider is None or self._lifecycle.is_stopped:
            return

        provider.force_flush()
        provider.shutdown()
        self._lifecycle.transition_to(SinkState.STOPPED)
        self._log.info("Stopped %s.", self.sink_name, extra={"event": "sink.stop"})

    def dispose(self) -> None:
        """Release the meter provider. Safe to call more than once."""

        provider = self._meter_provider
        self._meter_provider = None
        self._mapper = None
        if provider is not None and not self._lifecycle.is_stopped:
            provider.shutdown()
            self._lifecycle.transition_to(SinkState.STOPPED)

    def __enter__(self) -> "OtelSink":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    def _save_scenario_stats(self, stats: Sequence[ScenarioStats], hook: str) -> None:
        mapper = self._require_mapper(hook)
        mapper.map_scenario_stats_batch(stats)

    def _require_mapper(self, hook: str) -> MetricMapper:
        if self._context is None:
            raise MissingContextError("NodeInfo")
        self._lifecycle.ensure_running(hook)
        if self._mapper is None:
            raise MissingContextError("MeterProvider")
        return self._mapper


__all__ = ["OtelSink"]
