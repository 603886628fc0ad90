"""
Chunk regeneration through the content oracle.

OracleChunkRegenerator is a ready-made ``regen`` callback for the
ChunkScheduler: it asks the oracle for one chunk's tiles and writes them
through the running cycle's isolation mask. Failure results raise
ChunkRegenerationError, which the executor logs and records before
moving on to the next chunk.
"""

from __future__ import annotations

import logging
from typing import Callable

from tile_regen.engine.chunks import chunk_rect
from tile_regen.engine.isolation import IsolationMask, MaskedTileWriter
from tile_regen.engine.protocols import TileOracle, TileStorage
from tile_regen.engine.selection import read_tiles
from tile_regen.models.chunk import ChunkKey
from tile_regen.models.oracle import RegionDescription

logger = logging.getLogger(__name__)


class ChunkRegenerationError(Exception):
    """The oracle returned a failure result for a chunk."""

    def __init__(self, key: ChunkKey, kind: str, detail: str):
        self.key = key
        self.kind = kind
        self.detail = detail
        super().__init__(f"Chunk {key}: {kind}: {detail}")


class OracleChunkRegenerator:
    """Regenerates one chunk per call via a TileOracle.

    Args:
        oracle: Content oracle
        storage: Tile storage for context reads and masked writes
        chunk_size: Chunk edge length in tiles
        mask_source: Returns the isolation mask of the running cycle,
            typically ``lambda: scheduler.isolation_mask``
        layer_name: Layer name passed to the oracle
        prompt: Design intent passed to the oracle for every chunk
        world_size: Optional (width, height); writes outside are skipped

    Example:
        >>> regen = OracleChunkRegenerator(
        ...     oracle, layer, 8, mask_source=lambda: scheduler.isolation_mask
        ... )
        >>> scheduler = ChunkScheduler(settings, regen)
    """

    def __init__(
        self,
        oracle: TileOracle,
        storage: TileStorage,
        chunk_size: int,
        mask_source: Callable[[], IsolationMask] | None = None,
        layer_name: str = "Ground_Layer",
        prompt: str = "",
        world_size: tuple[int, int] | None = None,
    ):
        self.oracle = oracle
        self.storage = storage
        self.chunk_size = chunk_size
        self.mask_source = mask_source or IsolationMask
        self.layer_name = layer_name
        self.prompt = prompt
        self.world_size = world_size or getattr(storage, "size", None)

    async def __call__(self, key: ChunkKey) -> None:
        bounds = chunk_rect(key, self.chunk_size)
        mask = self.mask_source()

        description = RegionDescription(
            region_id=str(key),
            bounds=bounds,
            z_level=key.level,
            layer_name=self.layer_name,
            prompt=self.prompt,
            current_tiles=read_tiles(self.storage, bounds),
            higher_bounds=mask.higher_than(key.level),
        )
        result = await self.oracle.generate(description)

        if not result.ok:
            raise ChunkRegenerationError(key, result.kind, result.detail)

        stats = MaskedTileWriter(self.storage, mask, key.level, self.world_size).write(
            (bounds.x, bounds.y), result.tiles
        )
        logger.debug(f"Chunk {key}: {stats.written} written, {stats.skipped} skipped")
