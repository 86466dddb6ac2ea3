"""Configuration system for jsontimeseries.

This module defines how callers describe an extraction: how keys are
built, how deep to descend, where timestamps live, and which elements
are emitted.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Union

from .core.keys import DEFAULT_TEMPLATE, ReplacementProvider
from .core.matching import PathPredicate, PointerMatchRule, RuleLike
from .core.pointer import PointerLike, try_parse_pointer
from .core.timestamps import DefaultTimestampProvider, TimestampParser
from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .error_policies import NodeErrorPolicy


DEFAULT_TIMESTAMP_PATH = "/time"
DEFAULT_PATH_SEPARATOR = "/"
DEFAULT_MAX_DEPTH = 5


@dataclass
class ExtractionOptions:
    """Complete configuration for sample extraction.

    Options are read-only to the engine. ``ExtractionPlan`` validates them
    once per extraction call, before any sample is produced.
    """

    # Key generation
    template: str = DEFAULT_TEMPLATE
    path_separator: str = DEFAULT_PATH_SEPARATOR
    include_array_indexes_in_keys: bool = True
    template_replacement_provider: Union[ReplacementProvider, Mapping, None] = None
    allow_unresolved_replacements: bool = True

    # Depth control
    recursive: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH  # < 1 means unbounded

    # Document positioning
    start_at: Optional[PointerLike] = None

    # Timestamps
    timestamp_path: Optional[PointerLike] = DEFAULT_TIMESTAMP_PATH
    timestamp_parser: Optional[TimestampParser] = None
    default_timestamp_provider: Optional[DefaultTimestampProvider] = None
    allow_nested_timestamps: bool = False

    # Element filtering
    include_element: Optional[PathPredicate] = None
    include_pointers: Optional[Sequence[RuleLike]] = None
    exclude_pointers: Optional[Sequence[RuleLike]] = None
    allow_wildcard_expressions: bool = False

    # Error handling
    error_policy: Optional["NodeErrorPolicy"] = None

    # Convenience constructors for common configurations

    @classmethod
    def flat(cls, **kwargs) -> 'ExtractionOptions':
        """Create options that emit the top-level properties of each document.

        Nested objects and arrays are emitted as raw JSON text.
        """
        kwargs['recursive'] = False
        return cls(**kwargs)

    @classmethod
    def nested(cls, max_depth: int = DEFAULT_MAX_DEPTH, **kwargs) -> 'ExtractionOptions':
        """Create options for recursive extraction with nested timestamps.

        Args:
            max_depth: How deep to descend (< 1 = unbounded)

        Returns:
            ExtractionOptions for recursive extraction
        """
        kwargs.setdefault('allow_nested_timestamps', True)
        return cls(recursive=True, max_depth=max_depth, **kwargs)

    @property
    def is_unbounded(self) -> bool:
        return self.recursive and self.max_depth < 1

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not isinstance(self.template, str) or not self.template.strip():
            errors.append("template cannot be empty or white space")

        if not isinstance(self.path_separator, str) or not self.path_separator:
            errors.append("path_separator cannot be empty")

        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            errors.append("max_depth must be an integer")

        if self.start_at is not None and try_parse_pointer(self.start_at) is None:
            errors.append(f"start_at '{self.start_at}' is not a valid JSON Pointer")

        if self.timestamp_path is not None and try_parse_pointer(self.timestamp_path) is None:
            errors.append(f"timestamp_path '{self.timestamp_path}' is not a valid JSON Pointer")

        # Check hooks
        for name in ('timestamp_parser', 'default_timestamp_provider', 'include_element'):
            hook = getattr(self, name)
            if hook is not None and not callable(hook):
                errors.append(f"{name} must be callable")

        provider = self.template_replacement_provider
        if provider is not None and not callable(provider) and not isinstance(provider, Mapping):
            errors.append("template_replacement_provider must be callable or a mapping")

        if self.error_policy is not None and not callable(getattr(self.error_policy, 'handle', None)):
            errors.append("error_policy must provide a handle(error, path) method")

        # Check match rules
        for name in ('include_pointers', 'exclude_pointers'):
            rules = getattr(self, name)
            if rules is None:
                continue
            if isinstance(rules, (str, PointerMatchRule)):
                rules = [rules]
            for rule in rules:
                try:
                    PointerMatchRule.coerce(rule)
                except ConfigurationError as e:
                    errors.append(f"{name}: {e}")

        return errors
