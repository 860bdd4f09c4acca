import asyncio
import inspect
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader


_ASYNCIO_MARK_ATTR = "_loadtest_sink_asyncio_marker"


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))


from loadtest_otel_sink.config import CustomTag  # noqa: E402
from loadtest_otel_sink.contracts import (  # noqa: E402
    LatencyStats,
    MeasurementStats,
    NodeInfo,
    NodeType,
    OperationType,
    RequestStats,
    TestInfo,
)
from loadtest_otel_sink.telemetry.instruments import METER_NAME, SinkInstruments  # noqa: E402
from loadtest_otel_sink.telemetry.mapper import MetricMapper  # noqa: E402
from loadtest_otel_sink.telemetry.tags import TagBuilder  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "asyncio: run the marked test using an asyncio event loop",
    )


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    del session, config
    for item in items:
        if item.get_closest_marker("asyncio"):
            setattr(item, _ASYNCIO_MARK_ATTR, True)


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> object:
    if not getattr(pyfuncitem, _ASYNCIO_MARK_ATTR, False):
        return None
    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        kwargs = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
        loop.run_until_complete(test_func(**kwargs))
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True


@dataclass
class FakeContext:
    test_info: Optional[TestInfo] = field(
        default_factory=lambda: TestInfo(
            session_id="2026-10-15_12.00.00_session_a1b2",
            test_suite="checkout",
            test_name="peak_load",
            cluster_id="cluster-1",
        )
    )
    node_info: Optional[NodeInfo] = field(
        default_factory=lambda: NodeInfo(
            node_type=NodeType.SINGLE_NODE,
            current_operation=OperationType.BOMBING,
            cores_count=8,
        )
    )
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("tests.host"))

    def get_node_info(self) -> Optional[NodeInfo]:
        return self.node_info


@pytest.fixture
def context() -> FakeContext:
    return FakeContext()


@pytest.fixture
def custom_tags() -> list[CustomTag]:
    return [CustomTag(key="env", value="staging"), CustomTag(key="team", value="payments")]


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    return InMemoryMetricReader()


@pytest.fixture
def meter_provider(metric_reader):
    provider = MeterProvider(metric_readers=[metric_reader])
    try:
        yield provider
    finally:
        provider.shutdown()


@pytest.fixture
def instruments(meter_provider) -> SinkInstruments:
    return SinkInstruments(meter_provider.get_meter(METER_NAME))


@pytest.fixture
def mapper(instruments, context, custom_tags) -> MetricMapper:
    return MetricMapper(instruments, TagBuilder(context, custom_tags))


def measurement(count: int = 0, rps: float = 0.0, latency=(0.0, 0.0, 0.0, 0.0)) -> MeasurementStats:
    return MeasurementStats(
        request=RequestStats(count=count, rps=rps),
        latency=LatencyStats(*latency),
    )


@pytest.fixture
def make_measurement():
    return measurement


def collect_points(reader: InMemoryMetricReader) -> dict[str, list]:
    """Data points per metric name from one collection."""

    data = reader.get_metrics_data()
    points: dict[str, list] = {}
    if data is None:
        return points
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                points.setdefault(metric.name, []).extend(metric.data.data_points)
    return points


@pytest.fixture
def read_points(metric_reader):
    return lambda reader=None: collect_points(reader or metric_reader)
