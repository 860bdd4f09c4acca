"""Maps host statistics records onto the sink's instruments."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from loadtest_otel_sink.contracts import (
    CounterStats,
    GaugeStats,
    MeasurementStats,
    MetricStats,
    NodeInfo,
    ScenarioStats,
    StepStats,
)
from loadtest_otel_sink.telemetry.instruments import SinkInstruments
from loadtest_otel_sink.telemetry.tags import LabelSet, TagBuilder

logger = logging.getLogger(__name__)


class MetricMapper:
    def __init__(self, instruments: SinkInstruments, tags: TagBuilder) -> None:
        self._instruments = instruments
        self._tags = tags

    def record_node_info(self, node_info: NodeInfo) -> None:
        """One-time node gauges, labelled with test identity only."""

        labels = self._tags.base_labels()
        self._instruments.node_count.set(1, labels)
        self._instruments.cpu_count.set(node_info.cores_count, labels)

    def map_counter(self, counter: CounterStats) -> None:
        labels = self._tags.metric_labels(
            counter.scenario_name, counter.metric_name, counter.unit_of_measure, counter.value
        )
        self._instruments.total_requests_count.add(counter.value, labels)

    def map_gauge(self, gauge: GaugeStats) -> None:
        labels = self._tags.metric_labels(
            gauge.scenario_name, gauge.metric_name, gauge.unit_of_measure, gauge.value
        )
        self._instruments.users_count.set(gauge.value, labels)

    def map_metric_stats(self, metrics: MetricStats) -> None:
        for counter in metrics.counters:
            self.map_counter(counter)
        for gauge in metrics.gauges:
            self.map_gauge(gauge)

    def map_scenario_stats(self, scenario: ScenarioStats) -> int:
        """Record one scenario and return how many units of work were recorded.

        A scenario without step breakdowns is recorded once at scenario
        granularity; otherwise every step is recorded on its own and the
        scenario-level bundle is not.
        """

        if not scenario.step_stats:
            self._record(scenario, scenario.ok, scenario.fail)
            return 1

        for step in scenario.step_stats:
            self._record(scenario, step.ok, step.fail, step)
        return len(scenario.step_stats)

    def map_scenario_stats_batch(self, stats: Iterable[ScenarioStats]) -> int:
        recorded = 0
        for scenario in stats:
            recorded += self.map_scenario_stats(scenario)
        logger.debug("sink.mapper.recorded", extra={"units": recorded})
        return recorded

    def _labels_for(self, scenario: ScenarioStats, step: Optional[StepStats]) -> LabelSet:
        if step is None:
            return self._tags.scenario_labels(scenario.scenario_name)
        return self._tags.step_labels(scenario.scenario_name, step.step_name)

    def _record(
        self,
        scenario: ScenarioStats,
        ok: MeasurementStats,
        fail: MeasurementStats,
        step: Optional[StepStats] = None,
    ) -> None:
        labels = self._labels_for(scenario, step)
        inst = self._instruments

        inst.users_count.set(scenario.load_simulation_stats.value, labels)

        inst.total_rps.set(ok.request.rps + fail.request.rps, labels)
        inst.successful_rps.set(ok.request.rps, labels)
        inst.failed_rps.set(fail.request.rps, labels)

        inst.total_requests_count.add(ok.request.count + fail.request.count, labels)
        inst.successful_requests_count.add(ok.request.count, labels)
        inst.failed_requests_count.add(fail.request.count, labels)

        # Four point samples per call, one per percentile, not a real distribution.
        for value in ok.latency.percentiles():
            inst.successful_request_latency.record(value, labels)
        for value in fail.latency.percentiles():
            inst.failed_request_latency.record(value, labels)


__all__ = ["MetricMapper"]
