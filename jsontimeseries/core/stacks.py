"""Bounded, pooled stacks used during extraction.

Every extraction rents two fixed-capacity buffers from a ``StackPool``:
one for the ancestry of the node being processed and one for the
timestamps in scope. A stack indexes its buffer with a count cursor, so
pushes never allocate, and it hands the buffer back exactly once when
released. Misuse (overflow, underflow, use after release) means the
depth bookkeeping is broken and raises ``StackStateError``.
"""

import threading
from typing import Any, Dict, Generic, Iterator, List, NamedTuple, Optional, TypeVar

from ..exceptions import StackStateError
from .pointer import JsonPath
from .timestamps import ParsedTimestamp


T = TypeVar("T")


class StackPool:
    """Thread-safe pool of reusable list buffers.

    Buffers are bucketed by power-of-two size. Each rental is a private
    list that no other renter sees until it has been returned.
    """

    MIN_BUCKET_SIZE = 8

    def __init__(self, max_retained_per_bucket: int = 32):
        """Initialize the pool.

        Args:
            max_retained_per_bucket: How many idle buffers to keep per size;
                returned buffers beyond this are dropped
        """
        self.max_retained_per_bucket = max_retained_per_bucket
        self._lock = threading.Lock()
        self._buckets: Dict[int, List[List[Any]]] = {}
        self._rented = 0

    @classmethod
    def _bucket_size(cls, capacity: int) -> int:
        size = cls.MIN_BUCKET_SIZE
        while size < capacity:
            size *= 2
        return size

    def rent(self, capacity: int) -> List[Any]:
        """Rent a buffer with room for at least ``capacity`` items."""
        size = self._bucket_size(capacity)
        with self._lock:
            self._rented += 1
            free = self._buckets.get(size)
            if free:
                return free.pop()
        return [None] * size

    def give_back(self, buffer: List[Any]) -> None:
        """Return a buffer. The caller must already have cleared its used slots."""
        size = len(buffer)
        with self._lock:
            self._rented -= 1
            free = self._buckets.setdefault(size, [])
            if len(free) < self.max_retained_per_bucket:
                free.append(buffer)

    def get_stats(self) -> Dict[str, Any]:
        """Get pool statistics."""
        with self._lock:
            return {
                'rented': self._rented,
                'idle_buffers': sum(len(free) for free in self._buckets.values()),
                'bucket_sizes': sorted(self._buckets),
            }


SHARED_POOL = StackPool()


class FixedLengthStack(Generic[T]):
    """LIFO stack over a rented, fixed-capacity buffer.

    Iteration runs from the bottom (oldest) to the top (newest) entry.
    Use as a context manager, or call ``release()`` explicitly.
    """

    def __init__(self, capacity: int, pool: Optional[StackPool] = None):
        if capacity <= 0:
            raise ValueError("Capacity must be greater than zero.")
        self._pool = pool or SHARED_POOL
        self._capacity = capacity
        self._buffer: Optional[List[Any]] = self._pool.rent(capacity)
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_released(self) -> bool:
        return self._buffer is None

    def _checked_buffer(self) -> List[Any]:
        if self._buffer is None:
            raise StackStateError(f"{self.__class__.__name__} has already been released.")
        return self._buffer

    def push(self, entry: T) -> None:
        buffer = self._checked_buffer()
        if self._count >= self._capacity:
            raise StackStateError(
                f"{self.__class__.__name__} is full (capacity {self._capacity})."
            )
        buffer[self._count] = entry
        self._count += 1

    def pop(self) -> T:
        buffer = self._checked_buffer()
        if self._count == 0:
            raise StackStateError(f"{self.__class__.__name__} is empty.")
        self._count -= 1
        entry = buffer[self._count]
        buffer[self._count] = None
        return entry

    def peek(self) -> T:
        buffer = self._checked_buffer()
        if self._count == 0:
            raise StackStateError(f"{self.__class__.__name__} is empty.")
        return buffer[self._count - 1]

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[T]:
        buffer = self._checked_buffer()
        for index in range(self._count):
            yield buffer[index]

    def entries(self) -> List[T]:
        """Snapshot of the stack contents, bottom first."""
        buffer = self._checked_buffer()
        return buffer[:self._count]

    def release(self) -> None:
        """Clear the used slots and return the buffer to the pool. Idempotent."""
        buffer = self._buffer
        if buffer is None:
            return
        for index in range(self._count):
            buffer[index] = None
        self._count = 0
        self._buffer = None
        self._pool.give_back(buffer)

    def __enter__(self) -> "FixedLengthStack[T]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.is_released else f"{self._count}/{self._capacity}"
        return f"{self.__class__.__name__}({state})"


class ElementStackEntry(NamedTuple):
    """One level of the descent from the processing root.

    Attributes:
        segment: Property name or stringified array index; None for the root
        node: The JSON value at this level
        is_array_element: True if ``node`` is an element of an array
    """
    segment: Optional[str]
    node: Any
    is_array_element: bool = False


class ElementStack(FixedLengthStack[ElementStackEntry]):
    """Ancestry of the node being processed; the root entry sits at the bottom."""

    @property
    def depth(self) -> int:
        """Nesting depth of the top entry (0 for the root)."""
        return max(len(self) - 1, 0)

    def current_path(self) -> JsonPath:
        return tuple(entry.segment for entry in self if entry.segment is not None)


class TimestampStack(FixedLengthStack[ParsedTimestamp]):
    """Timestamps in scope; the top entry applies to the current node."""
    pass
