"""
Report models returned by the schedulers.

These are observational only: nothing in the schedulers reads them back.
They exist so callers and tests can see what a run did.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from tile_regen.models.chunk import ChunkKey


class PassName(str, Enum):
    """The four passes of a multi-pass run, in execution order."""

    FORWARD = "forward"
    REVERSE = "reverse"
    VERIFY = "partial_reverse_verify"
    STABILIZE = "forward_stabilize"


class ChunkFailure(BaseModel):
    """A regen callback that raised during a pass."""

    key: ChunkKey
    pass_name: PassName
    error: str


class PassStats(BaseModel):
    """Timing and coverage of one pass.

    Attributes:
        name: Which pass this was
        visited: Number of regen calls made
        duration_ms: Wall-clock duration measured with the injected clock
        yielded_after: Whether the executor yielded before the next pass
    """

    name: PassName
    visited: int = 0
    duration_ms: float = 0.0
    yielded_after: bool = False


class PassReport(BaseModel):
    """Outcome of a complete multi-pass run."""

    passes: list[PassStats] = Field(default_factory=list)
    failures: list[ChunkFailure] = Field(default_factory=list)

    @property
    def yields(self) -> int:
        return sum(1 for p in self.passes if p.yielded_after)

    @property
    def total_visits(self) -> int:
        return sum(p.visited for p in self.passes)


class CycleReport(BaseModel):
    """Outcome of one scheduling cycle of the chunk scheduler.

    Attributes:
        cycle: 1-based cycle number
        order: The processing order the passes walked
        components: Strongly connected components, in processing order
        passes: The executor's report
    """

    cycle: int
    order: list[ChunkKey] = Field(default_factory=list)
    components: list[list[ChunkKey]] = Field(default_factory=list)
    passes: PassReport = Field(default_factory=PassReport)


class OutcomeStatus(str, Enum):
    """How a single region regeneration ended."""

    REGENERATED = "regenerated"
    PARSE_ERROR = "parse_error"
    DIMENSION_MISMATCH = "dimension_mismatch"
    ORACLE_ERROR = "oracle_error"


class RegionOutcome(BaseModel):
    """Result of regenerating one region from the selection queue.

    Attributes:
        region_id: Identifier of the region
        status: How it ended
        priority: The score it was serviced with
        written: Cells written (tiles placed or removed)
        skipped: Cells left alone because of the isolation mask or world edge
        detail: Failure description, empty on success
    """

    region_id: str
    status: OutcomeStatus
    priority: float = 0.0
    written: int = 0
    skipped: int = 0
    detail: str = ""
