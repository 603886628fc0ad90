"""Unit tests for RegenerationQueue.

Tests cover:
- Ascending priority order with stable ties
- Identity-based lookup
- Override idempotence and duplicate suppression
- Override of a missing region
- Consumed requests are immutable
"""

import pytest

from tile_regen.engine.queue import RegenerationQueue
from tile_regen.models.request import RegenerationRequest, SnapshotInfo
from tile_regen.world.tilemap import SelectionRegion


def region(rid: str) -> SelectionRegion:
    return SelectionRegion(id=rid, start=(0, 0), end=(0, 0))


class TestOrdering:
    """Tests for priority ordering."""

    def test_pops_lowest_priority_first(self) -> None:
        queue = RegenerationQueue()
        a, b, c = region("a"), region("b"), region("c")
        queue.push(RegenerationRequest(region=a, priority=0.8))
        queue.push(RegenerationRequest(region=b, priority=0.1))
        queue.push(RegenerationRequest(region=c, priority=0.5))

        assert [queue.pop().region for _ in range(3)] == [b, c, a]
        assert queue.pop() is None
        assert queue.is_empty()

    def test_ties_keep_insertion_order(self) -> None:
        queue = RegenerationQueue()
        regions = [region(str(i)) for i in range(4)]
        for r in regions:
            queue.push(RegenerationRequest(region=r, priority=0.5))

        assert [req.region for req in queue] == regions

    def test_ties_follow_insertion_after_override(self) -> None:
        queue = RegenerationQueue()
        a, b = region("a"), region("b")
        queue.push(RegenerationRequest(region=a, priority=0.5))
        queue.push(RegenerationRequest(region=b, priority=0.3))

        queue.override(b, 0.5)

        assert [req.region for req in queue] == [a, b]

    def test_peek_does_not_consume(self) -> None:
        queue = RegenerationQueue()
        r = region("a")
        queue.push(RegenerationRequest(region=r, priority=0.3))

        assert queue.peek().region is r
        assert not queue.peek().consumed
        assert len(queue) == 1

    def test_peek_empty(self) -> None:
        assert RegenerationQueue().peek() is None


class TestIdentity:
    """Tests for identity-based lookup."""

    def test_equal_regions_are_distinct_entries(self) -> None:
        queue = RegenerationQueue()
        first = region("same")
        twin = first.model_copy()
        assert first == twin

        queue.push(RegenerationRequest(region=first, priority=0.5))
        queue.push(RegenerationRequest(region=twin, priority=0.2))

        assert len(queue) == 2
        assert queue.contains(first)
        assert queue.contains(twin)
        assert not queue.contains(region("same"))


class TestOverride:
    """Tests for override and duplicate handling."""

    def test_push_existing_region_overrides(self) -> None:
        queue = RegenerationQueue()
        r, other = region("a"), region("b")
        queue.push(RegenerationRequest(region=r, priority=0.9))
        queue.push(RegenerationRequest(region=other, priority=0.5))

        queue.push(RegenerationRequest(region=r, priority=0.1))

        assert len(queue) == 2
        assert queue.peek().region is r
        assert queue.peek().priority == 0.1

    def test_override_twice_same_as_once(self) -> None:
        queue = RegenerationQueue()
        r, other = region("a"), region("b")
        queue.push(RegenerationRequest(region=r, priority=0.9))
        queue.push(RegenerationRequest(region=other, priority=0.5))
        info = SnapshotInfo(z_level=3)

        assert queue.override(r, 0.2, info)
        once = [(req.region, req.priority, req.info) for req in queue]
        assert queue.override(r, 0.2, info)
        twice = [(req.region, req.priority, req.info) for req in queue]

        assert once == twice
        assert len(queue) == 2

    def test_override_with_new_priority_keeps_last(self) -> None:
        queue = RegenerationQueue()
        a = region("a")
        queue.push(RegenerationRequest(region=a, priority=0.5))

        queue.override(a, 0.1)
        queue.override(a, 0.9)

        assert len(queue) == 1
        assert queue.peek().region is a
        assert queue.peek().priority == 0.9

    def test_override_keeps_info_when_none(self) -> None:
        queue = RegenerationQueue()
        r = region("a")
        info = SnapshotInfo(z_level=2, prompt="forest")
        queue.push(RegenerationRequest(region=r, priority=0.9, info=info))

        queue.override(r, 0.1)

        assert queue.peek().info == info

    def test_override_missing_region(self, caplog) -> None:
        queue = RegenerationQueue()
        queue.push(RegenerationRequest(region=region("a"), priority=0.5))

        assert queue.override(region("ghost"), 0.1) is False
        assert len(queue) == 1
        assert "not found in queue" in caplog.text

    def test_override_reorders(self) -> None:
        queue = RegenerationQueue()
        a, b = region("a"), region("b")
        queue.push(RegenerationRequest(region=a, priority=0.1))
        queue.push(RegenerationRequest(region=b, priority=0.5))

        queue.override(a, 0.9)

        assert [req.region for req in queue] == [b, a]


class TestConsumed:
    """Tests for request immutability after pop."""

    def test_popped_request_cannot_change(self) -> None:
        queue = RegenerationQueue()
        r = region("a")
        queue.push(RegenerationRequest(region=r, priority=0.5))

        request = queue.pop()

        assert request.consumed
        with pytest.raises(RuntimeError):
            request.reprioritize(0.1)
        assert request.priority == 0.5

    def test_popped_region_can_be_queued_again(self) -> None:
        queue = RegenerationQueue()
        r = region("a")
        queue.push(RegenerationRequest(region=r, priority=0.5))
        first = queue.pop()

        queue.push(RegenerationRequest(region=r, priority=0.3))

        assert len(queue) == 1
        assert queue.peek() is not first
