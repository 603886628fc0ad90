"""
Protocol definitions for the regeneration schedulers.

This module defines the interfaces (Protocols) of the collaborators the
schedulers consume. Using protocols enables:

- Dependency injection for testing (fake clocks, fake oracles)
- Clear component boundaries with the editor, map and LLM layers
- Type-safe duck typing for region objects owned by the editor

Component Flow:
    Edits -> ChunkScheduler.mark_dirty -> DirtyTracker
                                            |
                                            v (debounced tick on SchedulerHost)
                       DependencyProvider -> topological_order
                                            |
                                            v
                                  MultiPassExecutor -> ChunkRegen

    Selection edits -> SelectionRegenerator -> RegenerationQueue
                                                 |
                                                 v
                                     TileOracle -> TileStorage (masked writes)
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Coroutine,
    Mapping,
    Protocol,
    Sequence,
    runtime_checkable,
)

if TYPE_CHECKING:
    from tile_regen.models.chunk import ChunkKey, Rect
    from tile_regen.models.oracle import OracleResult, RegionDescription


# Given the affected keys of a cycle, map each key to the keys it depends on
DependencyProvider = Callable[
    ["Sequence[ChunkKey]"], "Mapping[ChunkKey, set[ChunkKey]]"
]

# Per-chunk regeneration callback; may return an awaitable
ChunkRegen = Callable[["ChunkKey"], "Awaitable[None] | None"]


@runtime_checkable
class Region(Protocol):
    """Protocol for an editable region owned by the selection layer.

    Regions are arbitrary rectangles (not chunk-aligned) with a priority
    level. A greater Z-level means higher priority.
    """

    id: str

    def get_bounds(self) -> "Rect":
        """Return the tile rectangle covered by the region."""
        ...

    def get_z_level(self) -> int:
        """Return the region's priority level."""
        ...

    def get_start(self) -> tuple[int, int]:
        """Return the first corner cell the user selected."""
        ...

    def get_end(self) -> tuple[int, int]:
        """Return the opposite corner cell."""
        ...


@runtime_checkable
class TileStorage(Protocol):
    """Protocol for the tile read/write primitives of the map layer.

    The schedulers read existing content for oracle context and write
    accepted results. They never call these concurrently.
    """

    def get_tile_at(self, x: int, y: int) -> int | None:
        """Return the tile index at (x, y), or None when empty."""
        ...

    def put_tile_at(self, index: int, x: int, y: int) -> None:
        """Place a tile index at (x, y)."""
        ...

    def remove_tile_at(self, x: int, y: int) -> None:
        """Clear the cell at (x, y)."""
        ...


@runtime_checkable
class TileOracle(Protocol):
    """Protocol for the content oracle.

    Implementations must never raise for oracle-side failures; they return
    one of the failure variants of OracleResult instead.

    Example implementations:
        - LLMTileOracle: LiteLLM completion + JSON matrix parsing
        - Test doubles returning canned matrices
    """

    async def generate(self, description: "RegionDescription") -> "OracleResult":
        """Produce a tile matrix for the described region.

        Args:
            description: Bounds, level, prompt and current tiles

        Returns:
            TileMatrixResult on success, a failure result otherwise
        """
        ...


class TimerHandle(Protocol):
    """A pending delayed callback that can be cancelled."""

    def cancel(self) -> None:
        ...


@runtime_checkable
class SchedulerHost(Protocol):
    """Protocol for the host event loop the chunk scheduler runs on.

    Abstracts timers, ticks and yielding so tests can drive the scheduler
    deterministically without real time passing.
    """

    def monotonic(self) -> float:
        """Current time in seconds from a monotonic clock."""
        ...

    def call_soon(self, callback: Callable[[], None]) -> Any:
        """Run callback on the next tick."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback after delay seconds unless cancelled."""
        ...

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> Any:
        """Start a coroutine without awaiting it."""
        ...

    async def yield_now(self) -> None:
        """Suspend so the host can run other work before resuming."""
        ...
