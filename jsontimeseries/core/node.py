"""JSON node helpers for jsontimeseries.

Tree nodes are whatever an external JSON parser produced: dicts, lists,
strings, numbers, booleans and ``None``. The engine never wraps them; it
only asks what kind of value a node is and iterates containers in
document order. These helpers keep that inspection in one place.
"""

import json
import numbers
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Tuple


class NodeKind(Enum):
    """Kind of a JSON value."""
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    UNDEFINED = "undefined"     # Anything a JSON parser would not produce


def node_kind(node: Any) -> NodeKind:
    """Classify a tree node.

    ``bool`` is checked before numbers because it is an ``int`` subclass.
    """
    if node is None:
        return NodeKind.NULL
    if isinstance(node, bool):
        return NodeKind.BOOLEAN
    if isinstance(node, str):
        return NodeKind.STRING
    if isinstance(node, numbers.Number) and not isinstance(node, complex):
        return NodeKind.NUMBER
    if isinstance(node, Mapping):
        return NodeKind.OBJECT
    if isinstance(node, (list, tuple)):
        return NodeKind.ARRAY
    return NodeKind.UNDEFINED


def is_object(node: Any) -> bool:
    return isinstance(node, Mapping)


def is_array(node: Any) -> bool:
    return isinstance(node, (list, tuple))


def is_container(node: Any) -> bool:
    return is_object(node) or is_array(node)


def iter_children(node: Any) -> Iterator[Tuple[str, Any, bool]]:
    """Yield ``(segment, child, is_array_element)`` for a container node.

    Object members come out in document (insertion) order, array elements
    in index order with the stringified index as the segment. Scalars have
    no children.
    """
    if is_object(node):
        for name, child in node.items():
            yield str(name), child, False
    elif is_array(node):
        for index, child in enumerate(node):
            yield str(index), child, True


def _json_default(value: Any) -> Any:
    # Numbers the json module does not know natively stay numbers
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, Decimal):
        if value.is_finite() and value.as_tuple().exponent >= 0:
            return int(value)
        return float(value)
    if isinstance(value, numbers.Real):
        return float(value)
    return str(value)


def to_raw_json(node: Any) -> str:
    """Serialize a node to compact JSON text.

    ``Decimal`` values (from ``json.loads(..., parse_float=Decimal)``) and
    other non-builtin numbers are written as JSON numbers. Anything else
    the json module cannot encode is written as its string form.
    """
    return json.dumps(node, separators=(",", ":"), ensure_ascii=False, default=_json_default)


def measure_depth(node: Any) -> int:
    """Return the number of nesting levels below ``node``.

    A scalar or an empty container has depth 0, ``{"a": 1}`` has depth 1,
    ``{"a": {"b": 1}}`` has depth 2. Iterative so that very deep documents
    do not hit the interpreter's recursion limit.
    """
    deepest = 0
    pending = [(node, 0)]
    while pending:
        current, depth = pending.pop()
        if depth > deepest:
            deepest = depth
        for _, child, _ in iter_children(current):
            pending.append((child, depth + 1))
    return deepest
