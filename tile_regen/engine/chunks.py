"""
Chunk index - map tile rectangles and positions to chunk keys.

Pure functions, no state. Chunks are squares of ``chunk_size`` tiles;
chunk (cx, cy) covers tiles ``[cx * size, (cx + 1) * size)`` on each axis.
"""

from __future__ import annotations

from typing import Iterable

from tile_regen.models.chunk import ChunkKey, Rect


def tile_to_chunk(x: int, y: int, chunk_size: int) -> tuple[int, int]:
    """Return the (cx, cy) chunk coordinates containing tile (x, y)."""
    return x // chunk_size, y // chunk_size


def chunks_for_rect(rect: Rect, level: int, chunk_size: int) -> list[ChunkKey]:
    """
    List every chunk a rectangle overlaps, row-major.

    A rectangle with zero width or height is treated as the single cell
    at (x, y).

    Args:
        rect: Tile rectangle
        level: Priority level stamped on each key
        chunk_size: Chunk edge length in tiles

    Returns:
        Chunk keys ordered by row, then column
    """
    last_x = rect.x + max(0, rect.width - 1)
    last_y = rect.y + max(0, rect.height - 1)

    a_cx, a_cy = tile_to_chunk(rect.x, rect.y, chunk_size)
    b_cx, b_cy = tile_to_chunk(last_x, last_y, chunk_size)

    return [
        ChunkKey(cx=cx, cy=cy, level=level)
        for cy in range(a_cy, b_cy + 1)
        for cx in range(a_cx, b_cx + 1)
    ]


def chunks_for_tiles(
    positions: Iterable[tuple[int, int]], level: int, chunk_size: int
) -> list[ChunkKey]:
    """List the distinct chunks containing the given tile positions.

    Keys appear in the order their first tile was seen.
    """
    seen: dict[ChunkKey, None] = {}
    for x, y in positions:
        cx, cy = tile_to_chunk(x, y, chunk_size)
        seen.setdefault(ChunkKey(cx=cx, cy=cy, level=level), None)
    return list(seen)


def chunk_rect(key: ChunkKey, chunk_size: int) -> Rect:
    """Return the tile rectangle a chunk covers."""
    return Rect(
        x=key.cx * chunk_size,
        y=key.cy * chunk_size,
        width=chunk_size,
        height=chunk_size,
    )
