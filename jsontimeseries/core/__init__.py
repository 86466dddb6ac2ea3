"""Core extraction engine for jsontimeseries.

This package contains the building blocks of an extraction: path
handling, pointer matching, timestamp resolution, key generation, the
pooled stacks and the traversal itself.
"""

from .node import NodeKind, node_kind
from .pointer import JsonPath, MISSING, ROOT_PATH, format_pointer, parse_pointer, resolve_pointer
from .matching import PointerMatchRule, compile_matcher
from .timestamps import ParsedTimestamp, TimestampSource, parse_timestamp_value, try_resolve_timestamp
from .stacks import ElementStack, ElementStackEntry, StackPool, TimestampStack
from .sample import (
    BoolValue,
    NullValue,
    NumberValue,
    RawJsonValue,
    Sample,
    SampleValue,
    StringValue,
    ValueKind,
)
from .keys import FULL_PATH_PLACEHOLDER, LOCAL_NAME_PLACEHOLDER, KeyBuilder
from .context import ExtractionContext
from .traverser import SampleTraverser

__all__ = [
    "NodeKind",
    "node_kind",
    "JsonPath",
    "MISSING",
    "ROOT_PATH",
    "format_pointer",
    "parse_pointer",
    "resolve_pointer",
    "PointerMatchRule",
    "compile_matcher",
    "ParsedTimestamp",
    "TimestampSource",
    "parse_timestamp_value",
    "try_resolve_timestamp",
    "ElementStack",
    "ElementStackEntry",
    "StackPool",
    "TimestampStack",
    "BoolValue",
    "NullValue",
    "NumberValue",
    "RawJsonValue",
    "Sample",
    "SampleValue",
    "StringValue",
    "ValueKind",
    "FULL_PATH_PLACEHOLDER",
    "LOCAL_NAME_PLACEHOLDER",
    "KeyBuilder",
    "ExtractionContext",
    "SampleTraverser",
]
