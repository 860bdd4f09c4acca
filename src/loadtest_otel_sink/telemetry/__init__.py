"""Instrument set, label building and statistics mapping."""

from __future__ import annotations

from loadtest_otel_sink.telemetry.instruments import METER_NAME, SinkInstruments
from loadtest_otel_sink.telemetry.mapper import MetricMapper
from loadtest_otel_sink.telemetry.tags import LabelSet, TagBuilder, TestIdentity

__all__ = [
    "METER_NAME",
    "SinkInstruments",
    "MetricMapper",
    "LabelSet",
    "TagBuilder",
    "TestIdentity",
]
