"""Statistics and context structures handed to the sink by the load-test host."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Tuple


class NodeType(str, Enum):
    SINGLE_NODE = "SingleNode"
    COORDINATOR = "Coordinator"
    AGENT = "Agent"


class OperationType(str, Enum):
    NONE = "None"
    INIT = "Init"
    WARMUP = "WarmUp"
    BOMBING = "Bombing"
    STOP = "Stop"
    COMPLETE = "Complete"
    ERROR = "Error"


@dataclass(frozen=True, slots=True)
class TestInfo:
    session_id: str
    test_suite: str
    test_name: str
    cluster_id: str = ""

    __test__ = False  # keep pytest from collecting this as a test class


@dataclass(frozen=True, slots=True)
class NodeInfo:
    node_type: NodeType = NodeType.SINGLE_NODE
    current_operation: OperationType = OperationType.NONE
    cores_count: int = 1


class BaseContext(Protocol):
    """What the sink reads from the host context."""

    @property
    def test_info(self) -> Optional[TestInfo]: ...

    @property
    def logger(self) -> logging.Logger: ...

    def get_node_info(self) -> Optional[NodeInfo]: ...


@dataclass(frozen=True, slots=True)
class SessionStartInfo:
    scenarios: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RequestStats:
    count: int = 0
    rps: float = 0.0


@dataclass(frozen=True, slots=True)
class LatencyStats:
    percent50: float = 0.0
    percent75: float = 0.0
    percent95: float = 0.0
    percent99: float = 0.0

    def percentiles(self) -> Tuple[float, float, float, float]:
        """p50, p75, p95, p99 in that order."""
        return (self.percent50, self.percent75, self.percent95, self.percent99)


@dataclass(frozen=True, slots=True)
class MeasurementStats:
    request: RequestStats = field(default_factory=RequestStats)
    latency: LatencyStats = field(default_factory=LatencyStats)


@dataclass(frozen=True, slots=True)
class StepStats:
    step_name: str
    ok: MeasurementStats = field(default_factory=MeasurementStats)
    fail: MeasurementStats = field(default_factory=MeasurementStats)


@dataclass(frozen=True, slots=True)
class LoadSimulationStats:
    simulation_name: str = ""
    value: int = 0


@dataclass(frozen=True, slots=True)
class ScenarioStats:
    scenario_name: str
    ok: MeasurementStats = field(default_factory=MeasurementStats)
    fail: MeasurementStats = field(default_factory=MeasurementStats)
    step_stats: Tuple[StepStats, ...] = ()
    load_simulation_stats: LoadSimulationStats = field(default_factory=LoadSimulationStats)


@dataclass(frozen=True, slots=True)
class NodeStats:
    scenario_stats: Tuple[ScenarioStats, ...] = ()


@dataclass(frozen=True, slots=True)
class CounterStats:
    metric_name: str
    scenario_name: str
    unit_of_measure: str
    value: float


@dataclass(frozen=True, slots=True)
class GaugeStats:
    metric_name: str
    scenario_name: str
    unit_of_measure: str
    value: float


@dataclass(frozen=True, slots=True)
class MetricStats:
    counters: Tuple[CounterStats, ...] = ()
    gauges: Tuple[GaugeStats, ...] = ()


__all__ = [
    "NodeType",
    "OperationType",
    "TestInfo",
    "NodeInfo",
    "BaseContext",
    "SessionStartInfo",
    "RequestStats",
    "LatencyStats",
    "MeasurementStats",
    "StepStats",
    "LoadSimulationStats",
    "ScenarioStats",
    "NodeStats",
    "CounterStats",
    "GaugeStats",
    "MetricStats",
]
