"""JSON Pointer paths for jsontimeseries.

A path is a plain tuple of unescaped segments (property names or
stringified array indexes) relative to the processing root; the empty
tuple is the root itself. Parsing and formatting go through the
``jsonpointer`` package so that ``~0``/``~1`` escaping follows RFC 6901.
"""

import re
from typing import Any, Iterable, Optional, Tuple, Union

from jsonpointer import JsonPointer, JsonPointerException

from ..exceptions import ConfigurationError
from .node import is_array, is_object


JsonPath = Tuple[str, ...]
PointerLike = Union[str, JsonPath, JsonPointer]

ROOT_PATH: JsonPath = ()

_ARRAY_INDEX = re.compile(r"^(0|[1-9][0-9]*)$")


class _Missing:
    """Sentinel for pointers that do not resolve."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def parse_pointer(pointer: PointerLike) -> JsonPath:
    """Convert a JSON Pointer into a path tuple.

    Args:
        pointer: Pointer text such as ``"/data/0/value"``, an existing
            ``JsonPointer``, or an already split sequence of segments

    Returns:
        Tuple of unescaped segments

    Raises:
        ConfigurationError: If the text is not a valid JSON Pointer
    """
    if isinstance(pointer, JsonPointer):
        return tuple(str(part) for part in pointer.parts)
    if isinstance(pointer, str):
        try:
            return tuple(JsonPointer(pointer).parts)
        except JsonPointerException as e:
            raise ConfigurationError(f"'{pointer}' is not a valid JSON Pointer: {e}") from e
    if isinstance(pointer, (tuple, list)):
        return tuple(str(part) for part in pointer)
    raise ConfigurationError(f"Cannot interpret {pointer!r} as a JSON Pointer")


def try_parse_pointer(pointer: Optional[PointerLike]) -> Optional[JsonPath]:
    """Like :func:`parse_pointer` but returns ``None`` instead of raising."""
    if pointer is None:
        return None
    try:
        return parse_pointer(pointer)
    except ConfigurationError:
        return None


def format_pointer(path: Iterable[str]) -> str:
    """Serialize a path tuple as escaped JSON Pointer text (root is ``""``)."""
    return JsonPointer.from_parts(list(path)).path


def is_array_index(segment: str) -> bool:
    """Check if a segment is a canonical non-negative array index."""
    return bool(_ARRAY_INDEX.match(segment))


def resolve_pointer(node: Any, path: JsonPath) -> Any:
    """Evaluate a path against a node.

    Objects are indexed by property name and arrays by canonical index;
    anything else stops resolution.

    Returns:
        The referenced value, or ``MISSING`` if the path does not resolve
    """
    current = node
    for segment in path:
        if is_object(current):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif is_array(current):
            if not is_array_index(segment):
                return MISSING
            index = int(segment)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current
