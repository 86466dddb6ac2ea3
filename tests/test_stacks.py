"""
Tests for the pooled fixed-capacity stacks.
"""

import threading

import pytest

from jsontimeseries import ExtractionOptions, ExtractionPlan, StackStateError
from jsontimeseries.core.stacks import (
    ElementStack,
    ElementStackEntry,
    FixedLengthStack,
    StackPool,
)


THREADS = 8
ROUNDS = 200


@pytest.fixture
def pool():
    return StackPool()


class TestFixedLengthStack:
    """Push, pop and release semantics."""

    def test_push_pop_peek(self, pool):
        stack = FixedLengthStack(3, pool)
        stack.push("a")
        stack.push("b")
        assert len(stack) == 2
        assert stack.peek() == "b"
        assert stack.pop() == "b"
        assert stack.pop() == "a"
        assert len(stack) == 0

    def test_iterates_bottom_to_top(self, pool):
        stack = FixedLengthStack(3, pool)
        for item in "abc":
            stack.push(item)
        assert list(stack) == ["a", "b", "c"]
        assert stack.entries() == ["a", "b", "c"]

    def test_invalid_capacity(self, pool):
        with pytest.raises(ValueError):
            FixedLengthStack(0, pool)

    def test_overflow(self, pool):
        stack = FixedLengthStack(1, pool)
        stack.push(1)
        with pytest.raises(StackStateError, match="full"):
            stack.push(2)

    def test_underflow(self, pool):
        stack = FixedLengthStack(1, pool)
        with pytest.raises(StackStateError, match="empty"):
            stack.pop()
        with pytest.raises(StackStateError, match="empty"):
            stack.peek()

    def test_use_after_release(self, pool):
        stack = FixedLengthStack(2, pool)
        stack.release()
        assert stack.is_released
        with pytest.raises(StackStateError, match="released"):
            stack.push(1)
        with pytest.raises(StackStateError, match="released"):
            list(stack)

    def test_release_is_idempotent(self, pool):
        stack = FixedLengthStack(2, pool)
        stack.release()
        stack.release()
        assert pool.get_stats()['rented'] == 0
        assert pool.get_stats()['idle_buffers'] == 1

    def test_context_manager_releases(self, pool):
        with FixedLengthStack(2, pool) as stack:
            stack.push("x")
            assert pool.get_stats()['rented'] == 1
        assert stack.is_released
        assert pool.get_stats()['rented'] == 0


class TestStackPool:
    """Buffer reuse."""

    def test_buffers_are_reused_cleared(self, pool):
        stack = FixedLengthStack(4, pool)
        stack.push("secret")
        stack.release()

        buffer = pool.rent(4)
        assert all(slot is None for slot in buffer)
        pool.give_back(buffer)
        assert pool.get_stats()['idle_buffers'] == 1

    def test_bucket_sizes(self, pool):
        pool.give_back(pool.rent(3))
        pool.give_back(pool.rent(20))
        assert pool.get_stats()['bucket_sizes'] == [8, 32]

    def test_retention_limit(self):
        pool = StackPool(max_retained_per_bucket=1)
        first = pool.rent(2)
        second = pool.rent(2)
        pool.give_back(first)
        pool.give_back(second)
        assert pool.get_stats() == {'rented': 0, 'idle_buffers': 1, 'bucket_sizes': [8]}

    def test_concurrent_renters_never_share_a_buffer(self):
        pool = StackPool(max_retained_per_bucket=4)
        barrier = threading.Barrier(THREADS)
        held = []
        errors = []
        lock = threading.Lock()

        def worker(marker):
            try:
                barrier.wait(timeout=5)
                for _ in range(ROUNDS):
                    with FixedLengthStack(4, pool) as stack:
                        for depth in range(4):
                            stack.push((marker, depth))
                        seen = list(stack)
                        if seen != [(marker, depth) for depth in range(4)]:
                            errors.append(f"{marker} saw {seen}")

                # Every thread holds a buffer at the same time
                buffer = pool.rent(4)
                buffer[0] = marker
                with lock:
                    held.append(id(buffer))
                barrier.wait(timeout=5)
                if buffer[0] != marker:
                    errors.append(f"{marker} found {buffer[0]!r} in its buffer")
                barrier.wait(timeout=5)
                buffer[0] = None
                pool.give_back(buffer)
            except threading.BrokenBarrierError as exc:
                errors.append(f"{marker}: {exc!r}")

        threads = [threading.Thread(target=worker, args=(f"thread-{i}",)) for i in range(THREADS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert not errors, f"Thread errors: {errors}"
        assert len(held) == THREADS
        assert len(set(held)) == THREADS
        stats = pool.get_stats()
        assert stats['rented'] == 0
        assert stats['idle_buffers'] == 4

    def test_concurrent_extractions_share_one_plan(self):
        pool = StackPool()
        plan = ExtractionPlan(ExtractionOptions.nested(max_depth=0), pool=pool)
        barrier = threading.Barrier(THREADS)
        results = {}
        errors = []

        def worker(index):
            doc = {"device": {"id": index, "readings": [index, index + 0.5]}}
            try:
                barrier.wait(timeout=5)
                for _ in range(ROUNDS // 10):
                    samples = [(s.key, s.value.value) for s in plan.execute(doc)]
                    if results.setdefault(index, samples) != samples:
                        errors.append(f"{index} got {samples}")
            except threading.BrokenBarrierError as exc:
                errors.append(f"{index}: {exc!r}")

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(THREADS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert not errors, f"Thread errors: {errors}"
        for index in range(THREADS):
            assert results[index] == [
                ("device/id", float(index)),
                ("device/readings/0", float(index)),
                ("device/readings/1", index + 0.5),
            ]
        assert pool.get_stats()['rented'] == 0


class TestElementStack:
    """Ancestry helpers."""

    def test_depth_and_path(self, pool):
        root = {"a": [{"b": 1}]}
        with ElementStack(4, pool) as stack:
            assert stack.depth == 0
            stack.push(ElementStackEntry(None, root))
            stack.push(ElementStackEntry("a", root["a"]))
            stack.push(ElementStackEntry("0", root["a"][0], True))
            assert stack.depth == 2
            assert stack.current_path() == ("a", "0")
