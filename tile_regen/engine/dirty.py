"""
Dirty tracker - accumulates chunk marks per priority level between cycles.
"""

from __future__ import annotations

import logging
from typing import Iterable

from tile_regen.engine.chunks import chunks_for_rect, chunks_for_tiles
from tile_regen.models.chunk import ChunkKey, Rect

logger = logging.getLogger(__name__)


class DirtyTracker:
    """Per-level sets of chunks marked dirty since the last drain.

    Sets are insertion ordered so a drain is deterministic. ``drain``
    swaps in a fresh set before returning, so marks that arrive while a
    cycle is running start the next cycle's set.

    Example:
        >>> tracker = DirtyTracker(chunk_size=8)
        >>> tracker.mark(Rect(x=0, y=0, width=10, height=2), level=1)
        2
        >>> [str(k) for k in tracker.drain()]
        ['0,0,1', '1,0,1']
        >>> tracker.is_empty
        True
    """

    def __init__(self, chunk_size: int):
        self.chunk_size = chunk_size
        self._dirty: dict[int, dict[ChunkKey, None]] = {}

    def mark(self, rect: Rect, level: int = 1) -> int:
        """Mark every chunk overlapped by rect at the given level.

        Returns:
            Number of chunks that were not already dirty
        """
        return self.mark_keys(chunks_for_rect(rect, level, self.chunk_size))

    def mark_tiles(self, positions: Iterable[tuple[int, int]], level: int = 1) -> int:
        """Mark the chunks containing the given tile positions."""
        return self.mark_keys(chunks_for_tiles(positions, level, self.chunk_size))

    def mark_keys(self, keys: Iterable[ChunkKey]) -> int:
        """Mark explicit chunk keys; each lands in its own level's set."""
        added = 0
        for key in keys:
            bucket = self._dirty.setdefault(key.level, {})
            if key not in bucket:
                bucket[key] = None
                added += 1
        if added:
            logger.debug(f"Marked {added} chunk(s) dirty, {len(self)} pending")
        return added

    def drain(self) -> list[ChunkKey]:
        """Take every dirty key and reset the tracker.

        Returns:
            Keys ordered by level ascending, then by first mark
        """
        dirty, self._dirty = self._dirty, {}
        return [key for level in sorted(dirty) for key in dirty[level]]

    def pending(self, level: int | None = None) -> list[ChunkKey]:
        """Dirty keys without draining, optionally for one level."""
        if level is not None:
            return list(self._dirty.get(level, {}))
        return [key for lvl in sorted(self._dirty) for key in self._dirty[lvl]]

    @property
    def is_empty(self) -> bool:
        return not any(self._dirty.values())

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._dirty.values())
