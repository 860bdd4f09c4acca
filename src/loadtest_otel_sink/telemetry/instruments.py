"""Instrument set exported by the sink.

The instrument names are part of the public contract: dashboards query them
directly, so they must stay stable across releases.
"""

from __future__ import annotations

from opentelemetry.metrics import Meter

METER_NAME = "loadtest.sinks.otel"
METER_VERSION = "0.1.0"

USERS_COUNT = "users_count"
CPU_COUNT = "cpu_count"
NODE_COUNT = "node_count"
TOTAL_REQUESTS_COUNT = "total_requests_count"
SUCCESSFUL_REQUESTS_COUNT = "successful_requests_count"
FAILED_REQUESTS_COUNT = "failed_requests_count"
TOTAL_RPS = "total_rps"
SUCCESSFUL_RPS = "successful_rps"
FAILED_RPS = "failed_rps"
SUCCESSFUL_REQUEST_LATENCY = "successful_request_latency"
FAILED_REQUEST_LATENCY = "failed_request_latency"


class SinkInstruments:
    """Counters, gauges and histograms the mapper writes into."""

    def __init__(self, meter: Meter) -> None:
        self.users_count = meter.create_gauge(
            USERS_COUNT,
            unit="1",
            description="Current number of simulated users (load simulation target value).",
        )
        self.cpu_count = meter.create_gauge(
            CPU_COUNT,
            unit="1",
            description="Number of CPU cores available to the load-test node.",
        )
        self.node_count = meter.create_gauge(
            NODE_COUNT,
            unit="1",
            description="Number of load-test nodes taking part in the session.",
        )

        self.total_requests_count = meter.create_counter(
            TOTAL_REQUESTS_COUNT,
            unit="1",
            description="Total number of requests (successful and failed).",
        )
        self.successful_requests_count = meter.create_counter(
            SUCCESSFUL_REQUESTS_COUNT,
            unit="1",
            description="Number of successful requests.",
        )
        self.failed_requests_count = meter.create_counter(
            FAILED_REQUESTS_COUNT,
            unit="1",
            description="Number of failed requests.",
        )

        self.total_rps = meter.create_gauge(
            TOTAL_RPS,
            unit="1/s",
            description="Requests per second, successful and failed combined.",
        )
        self.successful_rps = meter.create_gauge(
            SUCCESSFUL_RPS,
            unit="1/s",
            description="Successful requests per second.",
        )
        self.failed_rps = meter.create_gauge(
            FAILED_RPS,
            unit="1/s",
            description="Failed requests per second.",
        )

        self.successful_request_latency = meter.create_histogram(
            SUCCESSFUL_REQUEST_LATENCY,
            unit="ms",
            description="Latency percentiles (p50, p75, p95, p99) of successful requests.",
        )
        self.failed_request_latency = meter.create_histogram(
            FAILED_REQUEST_LATENCY,
            unit="ms",
            description="Latency percentiles (p50, p75, p95, p99) of failed requests.",
        )


INSTRUMENT_NAMES = (
    USERS_COUNT,
    CPU_COUNT,
    NODE_COUNT,
    TOTAL_REQUESTS_COUNT,
    SUCCESSFUL_REQUESTS_COUNT,
    FAILED_REQUESTS_COUNT,
    TOTAL_RPS,
    SUCCESSFUL_RPS,
    FAILED_RPS,
    SUCCESSFUL_REQUEST_LATENCY,
    FAILED_REQUEST_LATENCY,
)


__all__ = [
    "METER_NAME",
    "METER_VERSION",
    "INSTRUMENT_NAMES",
    "SinkInstruments",
    "USERS_COUNT",
    "CPU_COUNT",
    "NODE_COUNT",
    "TOTAL_REQUESTS_COUNT",
    "SUCCESSFUL_REQUESTS_COUNT",
    "FAILED_REQUESTS_COUNT",
    "TOTAL_RPS",
    "SUCCESSFUL_RPS",
    "FAILED_RPS",
    "SUCCESSFUL_REQUEST_LATENCY",
    "FAILED_REQUEST_LATENCY",
]
