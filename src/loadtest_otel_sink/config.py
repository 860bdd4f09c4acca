"""Configuration for the OpenTelemetry sink."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from loadtest_otel_sink.errors import SinkConfigurationError

CONFIG_SECTION = "LoadTest.Sinks.Otel"
DEFAULT_OTLP_ENDPOINT = "http://localhost:9464/metrics"

# Keys the sink writes itself; custom tags may not reuse them.
RESERVED_TAG_KEYS = frozenset(
    {
        "session_id",
        "current_operation",
        "node_type",
        "test_suite",
        "test_name",
        "cluster_id",
        "scenario_name",
        "step_name",
        "metric_name",
        "unit",
        "value",
    }
)


class ExporterType(str, Enum):
    OTLP = "Otlp"
    FILE = "File"


class CustomTag(BaseModel):
    """A key/value pair attached to every emitted measurement."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, coerce_numbers_to_str=True)

    key: str = Field(alias="Key")
    value: str = Field(alias="Value")


class SinkConfig(BaseModel):
    """Resolved sink settings.

    Field names are snake_case; the PascalCase keys used in infrastructure
    config files (``ExporterType``, ``OtlpExportEndpoint``, ``FilePath``,
    ``CustomTags``) are accepted as aliases.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    exporter_type: str = Field(default=ExporterType.OTLP.value, alias="ExporterType")
    otlp_export_endpoint: str = Field(default=DEFAULT_OTLP_ENDPOINT, alias="OtlpExportEndpoint")
    file_path: Optional[str] = Field(default=None, alias="FilePath")
    custom_tags: List[CustomTag] = Field(default_factory=list, alias="CustomTags")

    @property
    def exporter(self) -> ExporterType:
        try:
            return ExporterType(self.exporter_type)
        except ValueError:
            raise SinkConfigurationError(
                f"Unsupported exporter type: {self.exporter_type}",
                field="ExporterType",
            ) from None

    def validate_for_init(self) -> ExporterType:
        """Check the settings that Init depends on and return the exporter kind."""

        exporter = self.exporter
        if exporter is ExporterType.FILE and not (self.file_path or "").strip():
            raise SinkConfigurationError(
                "FilePath must be specified when using File exporter.",
                field="FilePath",
            )

        seen: set[str] = set()
        for tag in self.custom_tags:
            if tag.key in RESERVED_TAG_KEYS:
                raise SinkConfigurationError(
                    f"Custom tag key '{tag.key}' is reserved by the sink.",
                    field="CustomTags",
                )
            if tag.key in seen:
                raise SinkConfigurationError(
                    f"Custom tag key '{tag.key}' is configured more than once.",
                    field="CustomTags",
                )
            seen.add(tag.key)
        return exporter

    def describe(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class SinkSettings(BaseSettings):
    """Environment-level defaults, e.g. ``LOADTEST_OTEL_SINK_EXPORTER_TYPE=File``."""

    exporter_type: str = ExporterType.OTLP.value
    otlp_export_endpoint: str = DEFAULT_OTLP_ENDPOINT
    file_path: Optional[str] = None
    custom_tags: List[CustomTag] = []

    model_config = SettingsConfigDict(env_prefix="LOADTEST_OTEL_SINK_", case_sensitive=False)

    def to_config(self) -> SinkConfig:
        return SinkConfig(
            exporter_type=self.exporter_type,
            otlp_export_endpoint=self.otlp_export_endpoint,
            file_path=self.file_path,
            custom_tags=list(self.custom_tags),
        )


_RECOGNISED_KEYS = frozenset(
    name
    for field_name, info in SinkConfig.model_fields.items()
    for name in (field_name, info.alias)
    if name
)


def _parse(payload: Mapping[str, Any], source: str) -> SinkConfig:
    try:
        return SinkConfig.model_validate(dict(payload))
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else None
        loc = ".".join(str(p) for p in first.get("loc", ())) if first else None
        message = first.get("msg") if first else str(exc)
        raise SinkConfigurationError(
            f"Invalid sink configuration in {source}: {message}",
            field=loc or None,
        ) from exc


def resolve_sink_config(
    explicit: Optional[SinkConfig],
    infra_config: Optional[Mapping[str, Any]] = None,
) -> SinkConfig:
    """Pick the configuration Init should use.

    An explicit config always wins. Otherwise the ``LoadTest.Sinks.Otel``
    section of the infrastructure config is tried, then its root, then the
    environment.
    """

    if explicit is not None:
        return explicit

    infra = infra_config or {}
    section = infra.get(CONFIG_SECTION)
    if isinstance(section, Mapping):
        return _parse(section, f"section '{CONFIG_SECTION}'")

    if any(key in _RECOGNISED_KEYS for key in infra):
        return _parse(infra, "infrastructure config root")

    try:
        return SinkSettings().to_config()
    except ValidationError as exc:
        raise SinkConfigurationError(f"Invalid sink environment settings: {exc}") from exc


def load_infra_config(path: str | Path) -> dict[str, Any]:
    """Read an infrastructure config file (YAML or JSON) into a mapping."""

    file_path = Path(path)
    if not file_path.is_file():
        raise SinkConfigurationError(f"Infrastructure config not found: {file_path}")
    data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SinkConfigurationError(f"Infrastructure config must be a mapping: {file_path}")
    return data


__all__ = [
    "CONFIG_SECTION",
    "DEFAULT_OTLP_ENDPOINT",
    "RESERVED_TAG_KEYS",
    "ExporterType",
    "CustomTag",
    "SinkConfig",
    "SinkSettings",
    "resolve_sink_config",
    "load_infra_config",
]
