"""Unit tests for the chunk index.

Tests cover:
- Tile to chunk mapping, including negative coordinates
- Rectangle coverage and row-major ordering
- Zero-size rectangles
- Deduplicated tile position lookups
"""

import pytest

from tile_regen.engine.chunks import (
    chunk_rect,
    chunks_for_rect,
    chunks_for_tiles,
    tile_to_chunk,
)
from tile_regen.models.chunk import ChunkKey, Rect


class TestTileToChunk:
    """Tests for tile_to_chunk."""

    @pytest.mark.parametrize(
        "tile,expected",
        [
            ((0, 0), (0, 0)),
            ((7, 7), (0, 0)),
            ((8, 0), (1, 0)),
            ((15, 16), (1, 2)),
            ((-1, -1), (-1, -1)),
            ((-8, -9), (-1, -2)),
        ],
    )
    def test_floor_division(self, tile, expected) -> None:
        assert tile_to_chunk(*tile, chunk_size=8) == expected


class TestChunksForRect:
    """Tests for chunks_for_rect."""

    def test_rect_inside_one_chunk(self) -> None:
        keys = chunks_for_rect(Rect(x=1, y=1, width=3, height=3), level=2, chunk_size=8)
        assert keys == [ChunkKey(cx=0, cy=0, level=2)]

    def test_rect_straddling_four_chunks_row_major(self) -> None:
        keys = chunks_for_rect(Rect(x=6, y=6, width=4, height=4), level=1, chunk_size=8)
        assert keys == [
            ChunkKey(cx=0, cy=0),
            ChunkKey(cx=1, cy=0),
            ChunkKey(cx=0, cy=1),
            ChunkKey(cx=1, cy=1),
        ]

    def test_rect_ending_on_chunk_edge_stays_in_chunk(self) -> None:
        # Covers tiles 0..7, the last one is still in chunk 0
        keys = chunks_for_rect(Rect(x=0, y=0, width=8, height=8), level=1, chunk_size=8)
        assert keys == [ChunkKey(cx=0, cy=0)]

    def test_zero_size_rect_names_single_cell(self) -> None:
        keys = chunks_for_rect(Rect(x=9, y=3, width=0, height=0), level=1, chunk_size=8)
        assert keys == [ChunkKey(cx=1, cy=0)]

    def test_every_cell_is_covered(self) -> None:
        rect = Rect(x=3, y=5, width=13, height=7)
        keys = set(chunks_for_rect(rect, level=1, chunk_size=4))
        for x, y in rect.cells():
            cx, cy = tile_to_chunk(x, y, 4)
            assert ChunkKey(cx=cx, cy=cy) in keys


class TestChunksForTiles:
    """Tests for chunks_for_tiles."""

    def test_deduplicates_in_first_seen_order(self) -> None:
        keys = chunks_for_tiles([(9, 0), (0, 0), (10, 1), (0, 9)], level=1, chunk_size=8)
        assert keys == [
            ChunkKey(cx=1, cy=0),
            ChunkKey(cx=0, cy=0),
            ChunkKey(cx=0, cy=1),
        ]

    def test_empty_positions(self) -> None:
        assert chunks_for_tiles([], level=1, chunk_size=8) == []


class TestChunkRect:
    """Tests for chunk_rect."""

    def test_chunk_rect_round_trips_through_index(self) -> None:
        key = ChunkKey(cx=2, cy=1, level=3)
        rect = chunk_rect(key, 8)
        assert rect == Rect(x=16, y=8, width=8, height=8)
        assert chunks_for_rect(rect, level=3, chunk_size=8) == [key]
