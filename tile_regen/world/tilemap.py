"""
In-memory tile storage and selection regions.

TileLayer implements the TileStorage protocol over a sparse dict and adds
the snapshot/clear helpers the editor uses around a regeneration.
SelectionRegion is the concrete Region the selection layer hands to the
selection regenerator.
"""

from __future__ import annotations

import logging
import uuid

from pydantic import BaseModel, Field

from tile_regen.models.chunk import Rect
from tile_regen.models.oracle import EMPTY_TILE, TileMatrix

logger = logging.getLogger(__name__)


class TileLayer:
    """Sparse tile layer of a fixed size.

    Writes outside the layer are ignored, reads outside return None,
    mirroring how the map layer treats out-of-range cells.

    Example:
        >>> layer = TileLayer(10, 10)
        >>> layer.put_tile_at(9, 1, 1)
        >>> layer.get_tile_at(1, 1)
        9
        >>> layer.snapshot(Rect(x=1, y=1, width=2, height=1))
        [[9, -1]]
    """

    def __init__(self, width: int, height: int, name: str = "Ground_Layer"):
        self.width = width
        self.height = height
        self.name = name
        self._tiles: dict[tuple[int, int], int] = {}

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_tile_at(self, x: int, y: int) -> int | None:
        return self._tiles.get((x, y))

    def put_tile_at(self, index: int, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            return
        if index == EMPTY_TILE:
            self._tiles.pop((x, y), None)
        else:
            self._tiles[(x, y)] = index

    def remove_tile_at(self, x: int, y: int) -> None:
        self._tiles.pop((x, y), None)

    def snapshot(self, bounds: Rect | None = None) -> TileMatrix:
        """Capture tiles inside bounds (whole layer by default).

        Empty cells read as -1.
        """
        rect = bounds or Rect(x=0, y=0, width=self.width, height=self.height)
        return [
            [self._tiles.get((x, y), EMPTY_TILE) for x in range(rect.x, rect.right)]
            for y in range(rect.y, rect.bottom)
        ]

    def clear(self, bounds: Rect | None = None) -> int:
        """Remove every tile inside bounds (whole layer by default).

        Returns:
            Number of tiles removed
        """
        if bounds is None:
            removed = len(self._tiles)
            self._tiles.clear()
        else:
            doomed = [pos for pos in self._tiles if bounds.contains(*pos)]
            for pos in doomed:
                del self._tiles[pos]
            removed = len(doomed)
        logger.debug(f"Cleared {removed} tile(s) from {self.name}")
        return removed

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def __len__(self) -> int:
        return len(self._tiles)


class SelectionRegion(BaseModel):
    """A user selection: two corner cells, a Z-level and design intent.

    Attributes:
        id: Stable identifier
        start: First corner cell the user picked
        end: Opposite corner cell
        z_level: Priority level, greater is higher priority
        layer_name: Tile layer the selection edits
        prompt: Latest design intent for the selection
        history: Earlier user requests, oldest first
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    start: tuple[int, int]
    end: tuple[int, int]
    z_level: int = 1
    layer_name: str = "Ground_Layer"
    prompt: str = ""
    history: list[str] = Field(default_factory=list)

    def get_bounds(self) -> Rect:
        return Rect.from_corners(self.start, self.end)

    def get_z_level(self) -> int:
        return self.z_level

    def get_start(self) -> tuple[int, int]:
        return self.start

    def get_end(self) -> tuple[int, int]:
        return self.end

    def intersects(self, other: "SelectionRegion") -> bool:
        return self.get_bounds().intersects(other.get_bounds())

    def design_intent(self) -> str:
        """Join history and the current prompt, oldest first."""
        parts = [*self.history, self.prompt] if self.prompt else list(self.history)
        return "\n".join(p for p in parts if p)
