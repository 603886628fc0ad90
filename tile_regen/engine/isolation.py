"""
Region isolation policy.

A region at a higher priority level that was already regenerated in the
current run keeps its cells: a lower-priority regeneration may not write
inside its bounds, even where the two regions overlap. A greater Z-level
means higher priority.

The check scans the recorded regions for every candidate cell instead of
precomputing a bitmap. Region counts per run are expected to be small.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tile_regen.engine.protocols import TileStorage
from tile_regen.models.chunk import Rect
from tile_regen.models.oracle import EMPTY_TILE, TileMatrix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaskEntry:
    """Bounds of one already-regenerated region and its level."""

    bounds: Rect
    level: int


class IsolationMask:
    """Already-regenerated regions of the current run.

    The mask only grows during a run; the owning scheduler replaces it
    with a fresh one between runs.

    Example:
        >>> mask = IsolationMask()
        >>> mask.record(Rect(x=1, y=1, width=2, height=2), level=3)
        >>> mask.blocks(2, 2, level=2)
        True
        >>> mask.blocks(2, 2, level=3)
        False
    """

    def __init__(self) -> None:
        self._entries: list[MaskEntry] = []

    def record(self, bounds: Rect, level: int) -> None:
        """Add a region that has finished regenerating in this run.

        Recording the same bounds at the same level again is a no-op;
        later passes of the chunk scheduler revisit the same chunks.
        """
        entry = MaskEntry(bounds=bounds, level=level)
        if entry not in self._entries:
            self._entries.append(entry)

    def higher_than(self, level: int) -> list[Rect]:
        """Bounds of recorded regions with a strictly greater level."""
        return [e.bounds for e in self._entries if e.level > level]

    def blocks(self, x: int, y: int, level: int) -> bool:
        """Check whether a write at (x, y) from ``level`` must be skipped."""
        for entry in self._entries:
            if entry.level > level and entry.bounds.contains(x, y):
                return True
        return False

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class WriteStats:
    """Counts from one masked matrix write."""

    written: int = 0
    skipped: int = 0


class MaskedTileWriter:
    """Writes tile matrices into storage while honoring an isolation mask.

    Cells blocked by the mask or lying outside the world are skipped.
    ``EMPTY_TILE`` (-1) removes the tile at that cell.

    Args:
        storage: Tile storage to write into
        mask: Isolation mask of the current run
        level: Priority level of the region being written
        world_size: Optional (width, height) of the world; None = unbounded
    """

    def __init__(
        self,
        storage: TileStorage,
        mask: IsolationMask,
        level: int,
        world_size: tuple[int, int] | None = None,
    ):
        self.storage = storage
        self.mask = mask
        self.level = level
        self.world_size = world_size

    def _in_world(self, x: int, y: int) -> bool:
        if self.world_size is None:
            return True
        width, height = self.world_size
        return 0 <= x < width and 0 <= y < height

    def write(self, origin: tuple[int, int], tiles: TileMatrix) -> WriteStats:
        """
        Write a matrix with its top-left cell at origin.

        Args:
            origin: World (x, y) of tiles[0][0]
            tiles: Row-major tile indices

        Returns:
            WriteStats with written and skipped cell counts
        """
        stats = WriteStats()
        ox, oy = origin
        for ry, row in enumerate(tiles):
            for rx, tile in enumerate(row):
                x, y = ox + rx, oy + ry
                if not self._in_world(x, y) or self.mask.blocks(x, y, self.level):
                    stats.skipped += 1
                    continue
                if tile == EMPTY_TILE:
                    self.storage.remove_tile_at(x, y)
                else:
                    self.storage.put_tile_at(tile, x, y)
                stats.written += 1

        if stats.skipped:
            logger.debug(
                f"Level {self.level} write at {origin}: {stats.written} written, "
                f"{stats.skipped} skipped"
            )
        return stats
