"""Time series samples produced by jsontimeseries.

A sample value is one of five variants: null, number, string, boolean or
raw JSON text (the serialized form of an object or array that was
emitted whole). Each variant is its own frozen dataclass so that callers
can dispatch on type or on the ``kind`` tag.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Union

from .node import NodeKind, node_kind, to_raw_json
from .timestamps import TimestampSource


class ValueKind(Enum):
    """Tag of a sample value variant."""
    NULL = "null"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    RAW_JSON = "raw_json"


@dataclass(frozen=True)
class NullValue:
    kind: ClassVar[ValueKind] = ValueKind.NULL

    @property
    def value(self) -> None:
        return None


@dataclass(frozen=True)
class NumberValue:
    value: float
    kind: ClassVar[ValueKind] = ValueKind.NUMBER


@dataclass(frozen=True)
class StringValue:
    value: str
    kind: ClassVar[ValueKind] = ValueKind.STRING


@dataclass(frozen=True)
class BoolValue:
    value: bool
    kind: ClassVar[ValueKind] = ValueKind.BOOLEAN


@dataclass(frozen=True)
class RawJsonValue:
    """Serialized JSON text of an object or array."""
    value: str
    kind: ClassVar[ValueKind] = ValueKind.RAW_JSON


SampleValue = Union[NullValue, NumberValue, StringValue, BoolValue, RawJsonValue]

NULL_VALUE = NullValue()


def coerce_value(node: Any) -> SampleValue:
    """Convert a JSON node into a sample value.

    Numbers become floats, strings and booleans are kept, objects and
    arrays are serialized to compact JSON text, and anything else is null.
    """
    kind = node_kind(node)
    if kind is NodeKind.NUMBER:
        try:
            return NumberValue(float(node))
        except OverflowError:
            return NumberValue(math.inf if node > 0 else -math.inf)
    if kind is NodeKind.STRING:
        return StringValue(node)
    if kind is NodeKind.BOOLEAN:
        return BoolValue(node)
    if kind in (NodeKind.OBJECT, NodeKind.ARRAY):
        return RawJsonValue(to_raw_json(node))
    return NULL_VALUE


@dataclass(frozen=True)
class Sample:
    """A keyed, timestamped scalar reading.

    Attributes:
        key: Key generated from the sample key template
        timestamp: Timestamp in scope for the node
        value: The node's value
        timestamp_source: Where ``timestamp`` came from
    """
    key: str
    timestamp: datetime
    value: SampleValue
    timestamp_source: TimestampSource

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-friendly representation."""
        return {
            'key': self.key,
            'timestamp': self.timestamp.isoformat(),
            'value': self.value.value,
            'timestamp_source': self.timestamp_source.value,
        }
