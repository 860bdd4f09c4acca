import pytest
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from loadtest_otel_sink import sink as sink_module
from loadtest_otel_sink.config import CONFIG_SECTION, CustomTag, SinkConfig
from loadtest_otel_sink.contracts import (
    CounterStats,
    GaugeStats,
    LoadSimulationStats,
    MetricStats,
    NodeStats,
    ScenarioStats,
    SessionStartInfo,
    StepStats,
)
from loadtest_otel_sink.errors import MissingContextError, SinkConfigurationError, SinkLifecycleError
from loadtest_otel_sink.lifecycle import SinkState
from loadtest_otel_sink.sink import OtelSink
from loadtest_otel_sink.telemetry.instruments import METER_NAME

from conftest import collect_points


@pytest.fixture
def in_memory_reader(monkeypatch):
    reader = InMemoryMetricReader()
    built = []

    def _build(config):
        config.validate_for_init()
        built.append(config)
        return reader

    monkeypatch.setattr(sink_module, "build_metric_reader", _build)
    reader.built = built
    return reader


@pytest.fixture
def tagged_config():
    return SinkConfig(custom_tags=[CustomTag(key="env", value="staging")])


@pytest.mark.asyncio
async def test_init_builds_backend_and_enters_configured(context, in_memory_reader, tagged_config):
    sink = OtelSink(tagged_config)

    await sink.init(context, {})

    assert sink.state is SinkState.CONFIGURED
    assert sink.sink_name == METER_NAME
    assert [tag.key for tag in sink.custom_tags] == ["env"]
    assert in_memory_reader.built == [tagged_config]
    sink.dispose()


@pytest.mark.asyncio
async def test_init_reads_named_section_when_no_explicit_config(context, in_memory_reader):
    sink = OtelSink()

    await sink.init(context, {CONFIG_SECTION: {"CustomTags": [{"Key": "region", "Value": "eu"}]}})

    assert sink.config.custom_tags == [CustomTag(key="region", value="eu")]
    sink.dispose()


@pytest.mark.asyncio
async def test_file_mode_without_path_fails_before_building(context, monkeypatch):
    created = []
    monkeypatch.setattr(sink_module, "SinkInstruments", lambda meter: created.append(meter))
    sink = OtelSink(SinkConfig(exporter_type="File"))

    with pytest.raises(SinkConfigurationError):
        await sink.init(context, {})

    assert created == []
    assert sink.state is SinkState.UNINITIALIZED


@pytest.mark.asyncio
async def test_unknown_exporter_type_from_infra_config_fails(context):
    sink = OtelSink()

    with pytest.raises(SinkConfigurationError, match="Foo"):
        await sink.init(context, {"ExporterType": "Foo"})


@pytest.mark.asyncio
async def test_start_emits_node_gauges_with_identity_tags_only(context, in_memory_reader, tagged_config):
    sink = OtelSink(tagged_config)
    await sink.init(context, {})

    await sink.start(SessionStartInfo(scenarios=("browse",)))

    points = collect_points(in_memory_reader)
    assert [p.value for p in points["node_count"]] == [1]
    assert [p.value for p in points["cpu_count"]] == [8]
    assert len(points["cpu_count"][0].attributes) == 6 + 1
    assert sink.state is SinkState.RUNNING
    sink.dispose()


@pytest.mark.asyncio
async def test_realtime_and_final_stats_share_mapping(context, in_memory_reader, make_measurement):
    sink = OtelSink(SinkConfig())
    await sink.init(context, {})
    scenario = ScenarioStats(
        scenario_name="browse",
        ok=make_measurement(count=100),
        fail=make_measurement(count=5),
        load_simulation_stats=LoadSimulationStats("ramp", 10),
    )
    stepped = ScenarioStats(
        scenario_name="checkout",
        step_stats=(StepStats("pay", ok=make_measurement(count=3)),),
    )

    await sink.save_realtime_stats([scenario])
    await sink.save_final_stats(NodeStats(scenario_stats=(scenario, stepped)))

    points = collect_points(in_memory_reader)
    totals = {
        (dict(p.attributes)["scenario_name"], dict(p.attributes).get("step_name")): p.value
        for p in points["total_requests_count"]
    }
    assert totals == {("browse", None): 210, ("checkout", "pay"): 3}
    sink.dispose()


@pytest.mark.asyncio
async def test_realtime_metrics_are_mapped(context, in_memory_reader):
    sink = OtelSink(SinkConfig())
    await sink.init(context, {})

    await sink.save_realtime_metrics(
        MetricStats(
            counters=(CounterStats("retries", "browse", "count", 4),),
            gauges=(GaugeStats("queue", "browse", "items", 9),),
        )
    )

    points = collect_points(in_memory_reader)
    assert [p.value for p in points["total_requests_count"]] == [4]
    assert [p.value for p in points["users_count"]] == [9]
    sink.dispose()


@pytest.mark.asyncio
async def test_start_before_init_is_a_missing_context_error():
    with pytest.raises(MissingContextError, match="NodeInfo"):
        await OtelSink().start(SessionStartInfo())


@pytest.mark.asyncio
async def test_start_without_node_info_is_a_missing_context_error(context, in_memory_reader):
    sink = OtelSink(SinkConfig())
    await sink.init(context, {})
    context.node_info = None

    with pytest.raises(MissingContextError):
        await sink.start(SessionStartInfo())
    sink.dispose()


@pytest.mark.asyncio
async def test_double_init_is_rejected(context, in_memory_reader):
    sink = OtelSink(SinkConfig())
    await sink.init(context, {})

    with pytest.raises(SinkLifecycleError):
        await sink.init(context, {})
    sink.dispose()


@pytest.mark.asyncio
async def test_stop_is_idempotent_and_does_not_export_twice(context, tmp_path, make_measurement):
    target = tmp_path / "metrics.log"
    sink = OtelSink(SinkConfig(exporter_type="File", file_path=str(target)))
    await sink.init(context, {})
    await sink.start(SessionStartInfo())
    await sink.save_realtime_stats([ScenarioStats(scenario_name="browse", ok=make_measurement(count=1))])

    await sink.stop()
    written = target.read_text(encoding="utf-8")
    await sink.stop()

    assert "Metric: successful_requests_count" in written
    assert "Metric: cpu_count" in written
    assert target.read_text(encoding="utf-8") == written
    assert sink.state is SinkState.STOPPED


@pytest.mark.asyncio
async def test_stop_without_backend_is_a_noop():
    sink = OtelSink()

    await sink.stop()

    assert sink.state is SinkState.UNINITIALIZED


@pytest.mark.asyncio
async def test_emission_after_stop_is_rejected(context, in_memory_reader):
    sink = OtelSink(SinkConfig())
    await sink.init(context, {})
    await sink.stop()

    with pytest.raises(SinkLifecycleError):
        await sink.save_realtime_stats([ScenarioStats(scenario_name="browse")])


@pytest.mark.asyncio
async def test_dispose_is_safe_to_repeat(context, in_memory_reader):
    sink = OtelSink(SinkConfig())
    await sink.init(context, {})

    sink.dispose()
    sink.dispose()

    assert sink.state is SinkState.STOPPED


def test_context_manager_disposes():
    with OtelSink() as sink:
        assert sink.state is SinkState.UNINITIALIZED
    sink.dispose()
