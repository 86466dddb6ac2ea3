"""Sample key generation for jsontimeseries.

A key template is free text with ``{name}`` placeholders. Two names are
built in: ``{$prop}`` expands to the full path of the node and
``{$prop-local}`` to its last segment. Any other name is looked up as a
property on the ancestor objects of the node:

- non-recursive mode uses the nearest ancestor object only;
- recursive mode collects the property from every ancestor object, root
  first, and joins the values with the path separator. A ``location``
  declared on both a parent and a child therefore gives
  ``"<parent location>/<child location>"``.

When no ancestor defines the property, the replacement provider is
consulted, and failing that the placeholder is either kept as literal
text or reported with ``UnresolvedPlaceholderError``.
"""

import re
from collections.abc import Mapping
from typing import Any, Callable, List, Optional, Sequence, Union

from ..exceptions import UnresolvedPlaceholderError
from .node import is_object, to_raw_json
from .pointer import JsonPath
from .stacks import ElementStackEntry


FULL_PATH_PLACEHOLDER = "{$prop}"
LOCAL_NAME_PLACEHOLDER = "{$prop-local}"
DEFAULT_TEMPLATE = FULL_PATH_PLACEHOLDER

_FULL_PATH_NAME = FULL_PATH_PLACEHOLDER[1:-1]
_LOCAL_NAME_NAME = LOCAL_NAME_PLACEHOLDER[1:-1]

_PLACEHOLDER = re.compile(r"\{(?P<name>[^}]+?)\}", re.DOTALL)
_INTEGER_SEGMENT = re.compile(r"[+-]?[0-9]+")

ReplacementProvider = Callable[[str], Optional[str]]


def as_replacement_provider(
    source: Union[ReplacementProvider, Mapping, None]
) -> Optional[ReplacementProvider]:
    """Accept either a callable or a mapping of default replacements."""
    if source is None or callable(source):
        return source
    if isinstance(source, Mapping):
        return source.get
    raise TypeError(f"Expected a callable or a mapping, got {type(source).__name__}")


def stringify_property(value: Any) -> str:
    """Strings are used verbatim, everything else as compact JSON text."""
    if isinstance(value, str):
        return value
    return to_raw_json(value)


def is_default_template(template: str, recursive: bool) -> bool:
    """Check if a template is just the node's path.

    In non-recursive mode every path has one segment, so the local name
    placeholder is equivalent to the full path.
    """
    if template == FULL_PATH_PLACEHOLDER:
        return True
    return not recursive and template == LOCAL_NAME_PLACEHOLDER


class KeyBuilder:
    """Resolves a key template against the ancestry of a node.

    The builder is immutable and holds no per-document state, so one
    instance can serve every document of an extraction.
    """

    def __init__(self,
                 template: str = DEFAULT_TEMPLATE,
                 recursive: bool = False,
                 path_separator: str = "/",
                 include_array_indexes: bool = True,
                 replacement_provider: Union[ReplacementProvider, Mapping, None] = None,
                 allow_unresolved: bool = True):
        self.template = template
        self.recursive = recursive
        self.path_separator = path_separator
        self.include_array_indexes = include_array_indexes
        self.replacement_provider = as_replacement_provider(replacement_provider)
        self.allow_unresolved = allow_unresolved
        self.is_default_template = is_default_template(template, recursive)

    def build(self, path: JsonPath, ancestry: Sequence[ElementStackEntry]) -> str:
        """Build the key for the node at the top of ``ancestry``.

        Args:
            path: Path of the node relative to the processing root
            ancestry: Stack entries from the root (first) to the node (last)

        Returns:
            The generated key

        Raises:
            UnresolvedPlaceholderError: If a placeholder cannot be resolved
                and unresolved replacements are not allowed
        """
        segments = self._key_segments(path)

        if self.is_default_template:
            return self.path_separator.join(segments)

        def replace(match: "re.Match[str]") -> str:
            name = match.group("name")
            if name == _FULL_PATH_NAME:
                return self.path_separator.join(segments)
            if name == _LOCAL_NAME_NAME:
                return segments[-1] if segments else ""
            return self._resolve_property(name, match.group(0), path, ancestry)

        return _PLACEHOLDER.sub(replace, self.template)

    def _key_segments(self, path: JsonPath) -> List[str]:
        if self.include_array_indexes:
            return list(path)
        # Any segment that reads as an integer counts as an array index
        return [segment for segment in path if not _INTEGER_SEGMENT.fullmatch(segment)]

    def _resolve_property(self,
                          name: str,
                          placeholder: str,
                          path: JsonPath,
                          ancestry: Sequence[ElementStackEntry]) -> str:
        # The node itself is not its own ancestor
        ancestors = [entry.node for entry in ancestry[:-1] if is_object(entry.node)]

        if self.recursive:
            values = [stringify_property(obj[name]) for obj in ancestors if name in obj]
            if values:
                return self.path_separator.join(values)
        else:
            if ancestors and name in ancestors[-1]:
                return stringify_property(ancestors[-1][name])

        if self.replacement_provider is not None:
            replacement = self.replacement_provider(name)
            if replacement is not None:
                return replacement

        if self.allow_unresolved:
            return placeholder
        raise UnresolvedPlaceholderError(name, path)
