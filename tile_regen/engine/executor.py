"""
Multi-pass executor.

Walks a ProcessingOrder four times so that adjustments made by later
chunks get a chance to reach earlier ones:

    1. forward                 start -> end
    2. reverse                 end -> start
    3. partial reverse verify  last ``verify_tail`` chunks, end -> start
    4. forward stabilize       start -> end

Dependencies may be cyclic or only approximately known, so a single
forward pass cannot settle the result. The passes are a bounded
fixed-point approximation, not an exact solver.

Each pass is timed. When a pass overruns the time budget the executor
yields to the host before starting the next one, which bounds how long
a single tick is held. Passes within budget run back-to-back. Every
run finishes all four passes; there is no cancellation.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Awaitable, Callable, Sequence

from tile_regen.engine.protocols import ChunkRegen
from tile_regen.models.chunk import ChunkKey
from tile_regen.models.report import ChunkFailure, PassName, PassReport, PassStats

logger = logging.getLogger(__name__)


async def _sleep_zero() -> None:
    await asyncio.sleep(0)


class MultiPassExecutor:
    """Runs the four regeneration passes over a processing order.

    Regen callbacks run one at a time, each awaited before the next, so
    no two callbacks of a run overlap.

    Example:
        >>> executor = MultiPassExecutor(regen=my_regen, time_budget_ms=8)
        >>> report = await executor.run(order.keys)
        >>> [p.name for p in report.passes]
        [<PassName.FORWARD: 'forward'>, ...]
    """

    def __init__(
        self,
        regen: ChunkRegen,
        time_budget_ms: float = 8.0,
        clock: Callable[[], float] = time.perf_counter,
        yield_to_scheduler: Callable[[], Awaitable[None]] | None = None,
        verify_tail: int = 3,
        on_chunk_done: Callable[[ChunkKey], None] | None = None,
    ):
        """Initialize the executor.

        Args:
            regen: Per-chunk callback, sync or async
            time_budget_ms: Per-pass budget before yielding
            clock: Monotonic clock in seconds
            yield_to_scheduler: Awaitable hop back to the host loop
            verify_tail: Number of trailing chunks the verify pass revisits
            on_chunk_done: Called after each successful regen
        """
        self.regen = regen
        self.time_budget_ms = time_budget_ms
        self.clock = clock
        self.yield_to_scheduler = yield_to_scheduler or _sleep_zero
        self.verify_tail = verify_tail
        self.on_chunk_done = on_chunk_done

    def plan_passes(
        self, order: Sequence[ChunkKey]
    ) -> list[tuple[PassName, list[ChunkKey]]]:
        """Return the visiting sequence of each pass."""
        keys = list(order)
        tail = keys[len(keys) - min(self.verify_tail, len(keys)):]
        return [
            (PassName.FORWARD, keys),
            (PassName.REVERSE, keys[::-1]),
            (PassName.VERIFY, tail[::-1]),
            (PassName.STABILIZE, keys),
        ]

    async def run(self, order: Sequence[ChunkKey]) -> PassReport:
        """
        Execute all passes over the order.

        Args:
            order: Processing order (each key once)

        Returns:
            PassReport with per-pass stats and per-chunk failures
        """
        report = PassReport()
        passes = self.plan_passes(order)

        for i, (name, keys) in enumerate(passes):
            start = self.clock()
            for key in keys:
                await self._regen_one(key, name, report)
            elapsed_ms = (self.clock() - start) * 1000.0

            stats = PassStats(name=name, visited=len(keys), duration_ms=elapsed_ms)
            report.passes.append(stats)

            is_last = i == len(passes) - 1
            if not is_last and elapsed_ms > self.time_budget_ms:
                logger.debug(
                    f"Pass {name.value} took {elapsed_ms:.2f}ms "
                    f"(budget {self.time_budget_ms}ms), yielding"
                )
                stats.yielded_after = True
                await self.yield_to_scheduler()

        if report.failures:
            logger.warning(
                f"Multi-pass run finished with {len(report.failures)} chunk failure(s)"
            )
        return report

    async def _regen_one(self, key: ChunkKey, name: PassName, report: PassReport) -> None:
        try:
            result = self.regen(key)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                f"Chunk {key} failed in {name.value} pass: {type(e).__name__}: {e}"
            )
            report.failures.append(
                ChunkFailure(key=key, pass_name=name, error=f"{type(e).__name__}: {e}")
            )
            return

        if self.on_chunk_done is not None:
            self.on_chunk_done(key)
