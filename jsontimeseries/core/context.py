"""Per-document extraction state.

An ``ExtractionContext`` bundles everything one document's walk mutates:
the ancestry stack, the timestamp stack and the composed inclusion
predicate. It is created for a single top-level document (or a single
element of a top-level array), is never shared, and must be released
when the walk ends, including when the consumer stops early.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from ..exceptions import UnresolvedPlaceholderError
from .keys import KeyBuilder
from .matching import PathPredicate
from .node import measure_depth
from .pointer import JsonPath
from .stacks import SHARED_POOL, ElementStack, StackPool, TimestampStack

if TYPE_CHECKING:
    from ..config import ExtractionOptions
    from ..error_policies import NodeErrorPolicy


log = logging.getLogger(__name__)


def stack_capacity(root: Any, recursive: bool, max_depth: int) -> int:
    """Number of ancestry entries needed to walk ``root``.

    One slot for the root plus one per level that can be descended:
    a single level in non-recursive mode, ``max_depth`` levels when
    bounded, and the actual depth of the document when unbounded.
    """
    if not recursive:
        return 2
    if max_depth >= 1:
        return max_depth + 1
    return measure_depth(root) + 1


class ExtractionContext:
    """State bundle owned by one document traversal.

    Attributes:
        options: The validated extraction options
        timestamp_path: Parsed timestamp pointer, or None
        key_builder: Shared key builder
        element_stack: Ancestry from the root to the current node
        timestamp_stack: Timestamps in scope for the current node
    """

    def __init__(self,
                 options: "ExtractionOptions",
                 root: Any,
                 key_builder: KeyBuilder,
                 timestamp_path: Optional[JsonPath] = None,
                 predicate: Optional[PathPredicate] = None,
                 error_policy: Optional["NodeErrorPolicy"] = None,
                 pool: Optional[StackPool] = None):
        self.options = options
        self.error_policy = error_policy if error_policy is not None else options.error_policy
        self.key_builder = key_builder
        self.timestamp_path = timestamp_path
        self._predicate = predicate

        capacity = stack_capacity(root, options.recursive, options.max_depth)
        pool = pool or SHARED_POOL
        self.element_stack = ElementStack(capacity, pool)
        try:
            # Nested timestamps can only be pushed by objects on the ancestry stack
            self.timestamp_stack = TimestampStack(capacity, pool)
        except BaseException:
            self.element_stack.release()
            raise

    @property
    def is_default_template(self) -> bool:
        return self.key_builder.is_default_template

    @property
    def is_released(self) -> bool:
        return self.element_stack.is_released and self.timestamp_stack.is_released

    def can_process(self, path: JsonPath) -> bool:
        """Check if the node at ``path`` may be emitted.

        The node holding the timestamp currently in scope is never emitted;
        after that the configured predicate decides.
        """
        if self.is_timestamp_node(path):
            return False
        if self._predicate is not None and not self._predicate(path):
            return False
        return True

    def is_timestamp_node(self, path: JsonPath) -> bool:
        if not len(self.timestamp_stack):
            return False
        origin = self.timestamp_stack.peek().origin_path
        return origin is not None and path == origin

    def handle_node_error(self, error: UnresolvedPlaceholderError, path: JsonPath) -> None:
        """Route a per-node failure to the configured error policy."""
        policy = self.error_policy
        if policy is None:
            log.debug("Skipping element %s: %s", "/" + "/".join(path), error)
            return
        policy.handle(error, path)

    def release(self) -> None:
        """Return both stacks to the pool. Safe to call more than once."""
        try:
            self.timestamp_stack.release()
        finally:
            self.element_stack.release()

    def __enter__(self) -> "ExtractionContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
