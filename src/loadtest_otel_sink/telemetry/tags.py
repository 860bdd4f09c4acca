"""Label sets attached to every measurement the sink records.

Order is stable: test identity fields, custom tags, then ``scenario_name``
and ``step_name`` when the call site has them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Union

from loadtest_otel_sink.config import CustomTag
from loadtest_otel_sink.contracts import BaseContext
from loadtest_otel_sink.errors import MissingContextError

LabelValue = Union[str, bool, int, float]
LabelSet = Dict[str, LabelValue]

TEST_IDENTITY_TAGS_LENGTH = 6


@dataclass(frozen=True, slots=True)
class TestIdentity:
    session_id: str
    current_operation: str
    node_type: str
    test_suite: str
    test_name: str
    cluster_id: str

    __test__ = False

    @classmethod
    def from_context(cls, context: Optional[BaseContext]) -> "TestIdentity":
        node_info = context.get_node_info() if context is not None else None
        if node_info is None:
            raise MissingContextError("NodeInfo")
        test_info = context.test_info
        if test_info is None:
            raise MissingContextError("TestInfo")

        return cls(
            session_id=test_info.session_id,
            current_operation=node_info.current_operation.value.lower(),
            node_type=node_info.node_type.value,
            test_suite=test_info.test_suite,
            test_name=test_info.test_name,
            cluster_id=test_info.cluster_id,
        )

    def as_labels(self) -> LabelSet:
        return {
            "session_id": self.session_id,
            "current_operation": self.current_operation,
            "node_type": self.node_type,
            "test_suite": self.test_suite,
            "test_name": self.test_name,
            "cluster_id": self.cluster_id,
        }


class TagBuilder:
    """Builds the exact label set each call site needs.

    The identity is read from the host context on every call because the
    node's current operation moves on while the test runs.
    """

    def __init__(self, context: Optional[BaseContext], custom_tags: Sequence[CustomTag]) -> None:
        self._context = context
        self._custom_tags = tuple(custom_tags)

    @property
    def custom_tags(self) -> tuple[CustomTag, ...]:
        return self._custom_tags

    def custom_labels(self) -> LabelSet:
        return {tag.key: tag.value for tag in self._custom_tags}

    def base_labels(self) -> LabelSet:
        labels = TestIdentity.from_context(self._context).as_labels()
        labels.update(self.custom_labels())
        return labels

    def scenario_labels(self, scenario_name: str) -> LabelSet:
        labels = self.base_labels()
        labels["scenario_name"] = scenario_name
        return labels

    def step_labels(self, scenario_name: str, step_name: str) -> LabelSet:
        labels = self.scenario_labels(scenario_name)
        labels["step_name"] = step_name
        return labels

    def metric_labels(
        self,
        scenario_name: str,
        metric_name: str,
        unit: str,
        value: float,
    ) -> LabelSet:
        # Realtime metrics carry no test identity; value is repeated as a label.
        labels = self.custom_labels()
        labels["scenario_name"] = scenario_name
        labels["metric_name"] = metric_name
        labels["unit"] = unit
        labels["value"] = value
        return labels


__all__ = [
    "LabelSet",
    "LabelValue",
    "TEST_IDENTITY_TAGS_LENGTH",
    "TestIdentity",
    "TagBuilder",
]
