"""
Geometry models for chunk tracking.

Key concepts:
    - Rect: Half-open tile rectangle (x <= tx < x + width)
    - ChunkKey: Identity of one fixed-size chunk at one priority level

Example:
    >>> rect = Rect.from_corners((2, 1), (3, 2))
    >>> rect.width, rect.height
    (2, 2)
    >>> str(ChunkKey(cx=1, cy=0, level=2))
    '1,0,2'
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Rect(BaseModel):
    """Tile-space rectangle.

    Cells covered are ``x <= tx < x + width`` and ``y <= ty < y + height``.
    A rectangle with zero width or height still names the cell at (x, y)
    for chunk lookups, but contains no cells for isolation checks.

    Attributes:
        x: Left column
        y: Top row
        width: Number of columns
        height: Number of rows
    """

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    width: int = 1
    height: int = 1

    @classmethod
    def from_corners(cls, start: tuple[int, int], end: tuple[int, int]) -> "Rect":
        """Build the rectangle spanned by two inclusive corner cells.

        Args:
            start: One corner cell (x, y)
            end: The opposite corner cell, in any order relative to start

        Returns:
            Rect covering both corners
        """
        x0, x1 = sorted((start[0], end[0]))
        y0, y1 = sorted((start[1], end[1]))
        return cls(x=x0, y=y0, width=x1 - x0 + 1, height=y1 - y0 + 1)

    @property
    def right(self) -> int:
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """Exclusive bottom edge."""
        return self.y + self.height

    def contains(self, tx: int, ty: int) -> bool:
        """Check whether a tile cell lies inside this rectangle."""
        return self.x <= tx < self.right and self.y <= ty < self.bottom

    def intersects(self, other: "Rect") -> bool:
        """Check whether two rectangles share at least one cell."""
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def cells(self) -> list[tuple[int, int]]:
        """All (x, y) cells in row-major order."""
        return [
            (tx, ty)
            for ty in range(self.y, self.bottom)
            for tx in range(self.x, self.right)
        ]


class ChunkKey(BaseModel):
    """Identity of a chunk: chunk coordinates plus priority level.

    Keys are values: two keys with the same coordinates and level are
    equal and hash the same. The level never changes after creation.

    Attributes:
        cx: Chunk column (tile x // chunk_size)
        cy: Chunk row (tile y // chunk_size)
        level: Priority (Z) level the chunk was marked at
    """

    model_config = ConfigDict(frozen=True)

    cx: int
    cy: int
    level: int = 1

    def __str__(self) -> str:
        return f"{self.cx},{self.cy},{self.level}"

    @classmethod
    def parse(cls, text: str) -> "ChunkKey":
        """Read a key rendered as "cx,cy,level".

        Missing or non-numeric parts read as 0.

        Example:
            >>> ChunkKey.parse("3,-1,2")
            ChunkKey(cx=3, cy=-1, level=2)
        """
        parts = (text or "").split(",")
        values: list[int] = []
        for i in range(3):
            try:
                values.append(int(parts[i].strip()))
            except (IndexError, ValueError):
                values.append(0)
        return cls(cx=values[0], cy=values[1], level=values[2])
