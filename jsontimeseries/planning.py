"""Execution planning for jsontimeseries.

The ExtractionPlan validates ExtractionOptions, compiles everything that
can be shared between documents (pointers, the inclusion predicate, the
key builder) and then drives the per-document traversals.
"""

import logging
from typing import Any, Dict, Iterator, Optional

from .config import ExtractionOptions
from .core.context import ExtractionContext
from .core.keys import KeyBuilder
from .core.matching import PathPredicate, compile_matcher
from .core.node import is_array, is_object
from .core.pointer import MISSING, JsonPath, format_pointer, parse_pointer, resolve_pointer
from .core.sample import Sample
from .core.stacks import SHARED_POOL, StackPool
from .core.traverser import SampleTraverser
from .error_policies import NodeErrorPolicy, SkipNodePolicy
from .exceptions import ConfigurationError


log = logging.getLogger(__name__)


class ExtractionPlan:
    """Validated execution plan for sample extraction.

    The ExtractionPlan is the bridge between caller intent
    (ExtractionOptions) and execution. All configuration errors surface
    from the constructor, so a plan that exists can always be executed.

    A plan holds no per-document state; ``execute`` may be called any
    number of times, and each call walks the document afresh.
    """

    def __init__(self, options: Optional[ExtractionOptions] = None, pool: Optional[StackPool] = None):
        """Create and validate an execution plan.

        Args:
            options: Extraction options (defaults if None)
            pool: Stack pool to rent traversal buffers from

        Raises:
            ConfigurationError: If the options are invalid
        """
        self.options = options if options is not None else ExtractionOptions()
        self.pool = pool or SHARED_POOL

        # Validate configuration
        config_errors = self.options.validate()
        if config_errors:
            raise ConfigurationError(
                f"Invalid extraction options: {'; '.join(config_errors)}"
            )

        # Compile components
        self.start_at: Optional[JsonPath] = self._parse_optional_pointer(self.options.start_at)
        self.timestamp_path: Optional[JsonPath] = self._parse_optional_pointer(self.options.timestamp_path)
        self.predicate: Optional[PathPredicate] = self._compose_predicate()
        self.key_builder = KeyBuilder(
            template=self.options.template,
            recursive=self.options.recursive,
            path_separator=self.options.path_separator,
            include_array_indexes=self.options.include_array_indexes_in_keys,
            replacement_provider=self.options.template_replacement_provider,
            allow_unresolved=self.options.allow_unresolved_replacements,
        )
        self.error_policy: NodeErrorPolicy = self.options.error_policy or SkipNodePolicy()

    @staticmethod
    def _parse_optional_pointer(pointer: Any) -> Optional[JsonPath]:
        if pointer is None:
            return None
        return parse_pointer(pointer)

    def _compose_predicate(self) -> Optional[PathPredicate]:
        """Combine declarative match rules with the caller's predicate.

        Returns:
            A predicate, or None when every path is accepted
        """
        options = self.options
        matcher: Optional[PathPredicate] = None
        if options.include_pointers is not None or options.exclude_pointers is not None:
            matcher = compile_matcher(
                options.include_pointers,
                options.exclude_pointers,
                options.allow_wildcard_expressions,
            )

        include_element = options.include_element
        if matcher is None:
            return include_element
        if include_element is None:
            return matcher

        def combined(path: JsonPath) -> bool:
            return matcher(path) and include_element(path)

        return combined

    def create_context(self, root: Any) -> ExtractionContext:
        """Create the private context for one document."""
        return ExtractionContext(
            self.options,
            root,
            key_builder=self.key_builder,
            timestamp_path=self.timestamp_path,
            predicate=self.predicate,
            error_policy=self.error_policy,
            pool=self.pool,
        )

    def execute(self, document: Any) -> Iterator[Sample]:
        """Execute the plan against a parsed JSON document.

        Args:
            document: Parsed JSON value (object or array of objects)

        Yields:
            Samples in document order
        """
        root = document
        if self.start_at is not None:
            root = resolve_pointer(document, self.start_at)
            if root is MISSING:
                log.debug("start_at pointer %s did not resolve; nothing to extract",
                          format_pointer(self.start_at))
                return

        yield from self._execute_root(root)

    def _execute_root(self, root: Any) -> Iterator[Sample]:
        # Every array element is an independent document, however deeply
        # the arrays are nested
        pending = [root]
        while pending:
            node = pending.pop()
            if is_array(node):
                pending.extend(reversed(node))
            elif is_object(node):
                with self.create_context(node) as context:
                    yield from SampleTraverser(context).traverse(node)

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of execution plan.

        Useful for debugging and logging.

        Returns:
            Dictionary with plan details
        """
        return {
            'template': self.options.template,
            'default_template': self.key_builder.is_default_template,
            'recursive': self.options.recursive,
            'max_depth': self.options.max_depth if self.options.recursive else 1,
            'unbounded': self.options.is_unbounded,
            'start_at': format_pointer(self.start_at) if self.start_at is not None else None,
            'timestamp_path': format_pointer(self.timestamp_path) if self.timestamp_path is not None else None,
            'nested_timestamps': self.options.recursive and self.options.allow_nested_timestamps,
            'filtered': self.predicate is not None,
            'error_policy': self.error_policy.__class__.__name__,
        }
