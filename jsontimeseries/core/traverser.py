"""Depth-first sample traversal for jsontimeseries.

The traverser walks one document pre-order, in document order, and
yields a ``Sample`` for every admitted node that ends the descent:
scalars, and in non-recursive mode or at the depth limit whole objects
and arrays (emitted as raw JSON text).

The walk runs on an explicit stack of frames, one per open container,
so document depth is bounded by memory rather than the interpreter's
recursion limit. Ancestry and timestamp entries are pushed when a frame
opens and popped when it closes, and ``finally`` blocks close every open
frame, so the stacks unwind correctly even when the consumer abandons
the generator part way through.
"""

import logging
from typing import Any, Iterator, List, NamedTuple, Optional, Tuple

from ..exceptions import UnresolvedPlaceholderError
from .context import ExtractionContext
from .node import is_container, is_object, iter_children
from .pointer import ROOT_PATH, JsonPath
from .sample import Sample, coerce_value
from .stacks import ElementStackEntry
from .timestamps import (
    ParsedTimestamp,
    TimestampSource,
    resolve_document_timestamp,
    try_resolve_timestamp,
)


log = logging.getLogger(__name__)


class _Frame(NamedTuple):
    """An open container in the walk."""
    children: Iterator[Tuple[str, Any, bool]]
    path: JsonPath
    pushed_timestamp: bool


class SampleTraverser:
    """Walks a single document and yields its samples.

    A traverser is bound to one ``ExtractionContext`` and is not
    restartable; each document gets a fresh context and traverser.
    """

    def __init__(self, context: ExtractionContext):
        """Initialize traverser with its context.

        Args:
            context: Per-document state; the traverser does not release it
        """
        self.context = context
        options = context.options
        self.recursive = options.recursive
        self.max_depth = options.max_depth
        self.nested_timestamps = options.recursive and options.allow_nested_timestamps

    def traverse(self, root: Any) -> Iterator[Sample]:
        """Yield the samples of ``root``, which must be a JSON object.

        Args:
            root: The processing root

        Yields:
            Samples in document order
        """
        if not is_object(root):
            return

        context = self.context
        options = context.options

        context.element_stack.push(ElementStackEntry(None, root, False))
        try:
            timestamp = resolve_document_timestamp(
                root,
                context.timestamp_path,
                options.timestamp_parser,
                options.default_timestamp_provider,
            )
            context.timestamp_stack.push(timestamp)
            try:
                yield from self._walk(root)
            finally:
                context.timestamp_stack.pop()
        finally:
            context.element_stack.pop()

    def _is_terminal(self, depth: int) -> bool:
        if not self.recursive:
            return True
        return self.max_depth >= 1 and depth >= self.max_depth

    def _walk(self, root: Any) -> Iterator[Sample]:
        """Walk the children of ``root`` without recursing.

        ``frames[-1]`` is the container being iterated. Opening a frame
        means its ancestry entry (and any nested timestamp) stays pushed
        until the frame's children are exhausted.
        """
        context = self.context
        element_stack = context.element_stack
        frames: List[_Frame] = [_Frame(iter_children(root), ROOT_PATH, False)]
        try:
            while frames:
                step = next(frames[-1].children, None)
                if step is None:
                    self._close(frames.pop())
                    continue

                segment, child, is_array_element = step
                path = frames[-1].path + (segment,)
                element_stack.push(ElementStackEntry(segment, child, is_array_element))
                opened = False
                try:
                    # The timestamp node is excluded together with anything below it
                    if context.is_timestamp_node(path):
                        continue

                    if not is_container(child) or self._is_terminal(len(path)):
                        if context.can_process(path):
                            sample = self._emit(child, path)
                            if sample is not None:
                                yield sample
                        continue

                    # Rejected containers are still descended; the predicate is
                    # applied to each descendant on its own.
                    frames.append(self._open(child, path))
                    opened = True
                finally:
                    if not opened:
                        element_stack.pop()
        finally:
            while frames:
                self._close(frames.pop())

    def _open(self, node: Any, path: JsonPath) -> _Frame:
        pushed = False
        if self.nested_timestamps and is_object(node):
            pushed = self._push_nested_timestamp(node, path)
        return _Frame(iter_children(node), path, pushed)

    def _close(self, frame: _Frame) -> None:
        if frame.pushed_timestamp:
            self.context.timestamp_stack.pop()
        # The root frame's entry belongs to traverse()
        if frame.path:
            self.context.element_stack.pop()

    def _push_nested_timestamp(self, node: Any, path: JsonPath) -> bool:
        context = self.context
        options = context.options
        value, matched = try_resolve_timestamp(node, context.timestamp_path, options.timestamp_parser)
        if not matched:
            return False
        origin = path + context.timestamp_path
        log.debug("Nested timestamp %s at %s", value, "/" + "/".join(origin))
        context.timestamp_stack.push(ParsedTimestamp(value, TimestampSource.DOCUMENT, origin))
        return True

    def _emit(self, node: Any, path: JsonPath) -> Optional[Sample]:
        context = self.context
        try:
            key = context.key_builder.build(path, context.element_stack.entries())
        except UnresolvedPlaceholderError as e:
            context.handle_node_error(e, path)
            return None

        timestamp = context.timestamp_stack.peek()
        return Sample(key, timestamp.value, coerce_value(node), timestamp.source)
