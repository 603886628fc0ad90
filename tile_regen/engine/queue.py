"""
Selection priority queue.

Holds at most one RegenerationRequest per region. Requests are kept in
ascending priority order; ties are served in insertion order, and a
override keeps the request's original place among equal scores.
Regions are matched by identity, not equality.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Iterator

from tile_regen.models.request import RegenerationRequest, SnapshotInfo

logger = logging.getLogger(__name__)


def _region_label(region: Any) -> str:
    return str(getattr(region, "id", None) or repr(region))


class RegenerationQueue:
    """Priority queue of regeneration requests, lowest score first.

    Example:
        >>> queue = RegenerationQueue()
        >>> queue.push(RegenerationRequest(region=low, priority=0.6))
        >>> queue.push(RegenerationRequest(region=high, priority=1.0))
        >>> queue.override(high, 0.1, SnapshotInfo(z_level=3))
        True
        >>> queue.pop().region is high
        True
    """

    def __init__(self) -> None:
        self._queue: list[RegenerationRequest] = []
        self._sequence: dict[int, int] = {}
        self._counter = itertools.count()

    def push(self, request: RegenerationRequest) -> None:
        """Insert a request and keep the queue sorted.

        A request for a region that is already queued overrides the
        existing entry instead of adding a duplicate.
        """
        if self.contains(request.region):
            logger.debug(
                f"Region {_region_label(request.region)} already queued, overriding"
            )
            self.override(request.region, request.priority, request.info)
            return
        self._queue.append(request)
        self._sequence[id(request)] = next(self._counter)
        self._sort()

    def pop(self) -> RegenerationRequest | None:
        """Remove and return the lowest-score request, None when empty."""
        if not self._queue:
            return None
        request = self._queue.pop(0)
        self._sequence.pop(id(request), None)
        request.mark_consumed()
        return request

    def peek(self) -> RegenerationRequest | None:
        return self._queue[0] if self._queue else None

    def override(
        self, region: Any, new_priority: float, new_info: SnapshotInfo | None = None
    ) -> bool:
        """
        Re-score the queued request for a region in place.

        Args:
            region: The region, matched by identity
            new_priority: Replacement score
            new_info: Replacement snapshot info (kept when None)

        Returns:
            True if a request was updated, False if the region was not queued
        """
        for request in self._queue:
            if request.region is region:
                request.reprioritize(new_priority, new_info)
                self._sort()
                return True

        logger.warning(
            f"[RegenerationQueue] Region {_region_label(region)} not found in queue for override"
        )
        return False

    def contains(self, region: Any) -> bool:
        """Identity membership check, O(n)."""
        return any(request.region is region for request in self._queue)

    def is_empty(self) -> bool:
        return not self._queue

    def _sort(self) -> None:
        # equal scores fall back to push order
        self._queue.sort(key=lambda r: (r.priority, self._sequence[id(r)]))

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self) -> Iterator[RegenerationRequest]:
        return iter(list(self._queue))
