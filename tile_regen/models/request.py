"""
Regeneration request models for the selection priority queue.

A RegenerationRequest is created when a user finalizes or edits a
selection, re-scored in place when the same region is requested again
before being serviced, and consumed exactly once when popped.

Example:
    >>> info = SnapshotInfo(z_level=2, dependency_count=1)
    >>> request = RegenerationRequest(region=box, priority=0.6, info=info)
    >>> request.reprioritize(0.2, info)
    >>> request.priority
    0.2
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from tile_regen.models.oracle import TileMatrix


class SnapshotInfo(BaseModel):
    """Immutable context captured when a request is enqueued.

    Attributes:
        z_level: Priority level of the region at enqueue time
        dependency_count: How many other regions this one depends on
        dependency_pressure: Fraction of those dependencies already satisfied
        prior_tiles: Tiles inside the region at enqueue time
        prompt: Design intent recorded for the region
    """

    model_config = ConfigDict(frozen=True)

    z_level: int = 1
    dependency_count: int = 0
    dependency_pressure: float = 0.0
    prior_tiles: TileMatrix = Field(default_factory=list)
    prompt: str = ""


class RegenerationRequest(BaseModel):
    """One pending regeneration of a region.

    The region is held by reference; queue lookups compare regions by
    identity, never by value.

    Attributes:
        region: The region object (see tile_regen.engine.protocols.Region)
        priority: Score, lower is serviced sooner
        info: Context captured at enqueue time
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    region: Any
    priority: float
    info: SnapshotInfo = Field(default_factory=SnapshotInfo)

    _consumed: bool = PrivateAttr(default=False)

    @property
    def consumed(self) -> bool:
        """Whether the request has been popped from its queue."""
        return self._consumed

    def mark_consumed(self) -> None:
        """Freeze the request once the executor has taken it."""
        self._consumed = True

    def reprioritize(self, priority: float, info: SnapshotInfo | None = None) -> None:
        """Replace priority and (optionally) info in place.

        Raises:
            RuntimeError: If the request was already popped
        """
        if self._consumed:
            raise RuntimeError("Cannot modify a regeneration request after it was popped")
        self.priority = priority
        if info is not None:
            self.info = info
