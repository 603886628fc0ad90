"""
Chunk scheduler - dirty tracking, debounced triggering and cycle execution.

Data flow:
    mark_dirty / debounced_mark_dirty -> DirtyTracker
    quiet period elapses -> schedule_regen_now -> one host tick
    tick -> run_cycle: drain -> dependencies -> order -> MultiPassExecutor

All scheduler state lives on the instance; the host (event loop, clock,
timers) is injected so the whole flow can be driven by a fake host.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from tile_regen.config import RegenSettings
from tile_regen.engine.chunks import chunk_rect
from tile_regen.engine.dirty import DirtyTracker
from tile_regen.engine.executor import MultiPassExecutor
from tile_regen.engine.graph import build_dependency_map, topological_order
from tile_regen.engine.host import AsyncioHost
from tile_regen.engine.isolation import IsolationMask
from tile_regen.engine.protocols import (
    ChunkRegen,
    DependencyProvider,
    SchedulerHost,
    TimerHandle,
)
from tile_regen.models.chunk import ChunkKey, Rect
from tile_regen.models.report import CycleReport

logger = logging.getLogger(__name__)


class ChunkScheduler:
    """Batches edits into chunk-based regeneration cycles.

    Guarantees:
        - mark_dirty never runs a regen callback synchronously
        - at most one cycle is pending at a time; a new debounce restarts
          the quiet period instead of queuing another cycle
        - cycles never overlap; marks arriving during a cycle are kept
          for the next one
        - the isolation mask is fresh for every cycle

    Attributes:
        settings: Chunk size, time budget, debounce and verify tail
        regen: Per-chunk regeneration callback
        dependency_provider: Optional chunk dependency source
        host: Event loop abstraction for ticks, timers and yielding

    Example:
        >>> scheduler = ChunkScheduler(RegenSettings(), regen=regen_chunk)
        >>> scheduler.debounced_mark_dirty(Rect(x=0, y=0, width=4, height=4), level=1)
        >>> # ~120ms later one cycle runs over every chunk marked meanwhile
    """

    def __init__(
        self,
        settings: RegenSettings,
        regen: ChunkRegen,
        dependency_provider: DependencyProvider | None = None,
        host: SchedulerHost | None = None,
    ):
        self.settings = settings
        self.regen = regen
        self.dependency_provider = dependency_provider
        self.host: SchedulerHost = host or AsyncioHost()

        self._dirty = DirtyTracker(settings.chunk_size)
        self._pending_tick: Any = None
        self._debounce_timer: TimerHandle | None = None
        self._mask = IsolationMask()
        self._running = False
        self._rerun_requested = False
        self._cycles_started = 0
        self._last_report: CycleReport | None = None

    # --- Marking ---

    def mark_dirty(self, rect: Rect, level: int = 1) -> int:
        """Mark the chunks a rectangle overlaps. Does not schedule.

        Returns:
            Number of newly dirty chunks
        """
        return self._dirty.mark(rect, level)

    def mark_tiles(self, positions: Iterable[tuple[int, int]], level: int = 1) -> int:
        """Mark the chunks touched by tile edits and schedule a cycle."""
        added = self._dirty.mark_tiles(positions, level)
        if not self._dirty.is_empty:
            self.schedule_regen_now()
        return added

    def debounced_mark_dirty(
        self, rect: Rect, level: int = 1, quiet_ms: float | None = None
    ) -> None:
        """
        Mark a rectangle and (re)start the quiet-period timer.

        When the timer expires with no further debounced marks,
        schedule_regen_now() is called once.

        Args:
            rect: Edited tile rectangle
            level: Priority level of the edit
            quiet_ms: Quiet period override, defaults to settings.debounce_ms
        """
        self._dirty.mark(rect, level)

        if self._debounce_timer is not None:
            self._debounce_timer.cancel()

        delay_ms = self.settings.debounce_ms if quiet_ms is None else quiet_ms
        self._debounce_timer = self.host.call_later(
            delay_ms / 1000.0, self._on_debounce_elapsed
        )

    def _on_debounce_elapsed(self) -> None:
        self._debounce_timer = None
        self.schedule_regen_now()

    # --- Scheduling ---

    def schedule_regen_now(self) -> None:
        """Request one upcoming tick that starts a cycle.

        Idempotent while a tick is already pending.
        """
        if self._pending_tick is not None:
            return
        self._pending_tick = self.host.call_soon(self._on_tick)

    def _on_tick(self) -> None:
        self._pending_tick = None
        if self._dirty.is_empty:
            return
        if self._running:
            # Picked up when the running cycle finishes
            self._rerun_requested = True
            return
        self.host.spawn(self.run_cycle())

    async def run_cycle(self) -> CycleReport | None:
        """
        Drain the dirty set and regenerate it through all passes.

        Only one cycle runs at a time. Called while another cycle is
        running, it returns None and a follow-up cycle is scheduled when
        the running one finishes.

        Returns:
            CycleReport, or None when nothing was dirty or a cycle is running
        """
        if self._running:
            self._rerun_requested = True
            return None

        affected = self._dirty.drain()
        if not affected:
            return None

        self._running = True
        try:
            return await self._execute(affected)
        finally:
            self._running = False
            if self._rerun_requested:
                self._rerun_requested = False
                if not self._dirty.is_empty:
                    self.schedule_regen_now()

    async def _execute(self, affected: list[ChunkKey]) -> CycleReport:
        self._cycles_started += 1
        cycle = self._cycles_started
        self._mask = IsolationMask()

        logger.info(f"Regeneration cycle {cycle}: {len(affected)} chunk(s)")

        dependencies = build_dependency_map(affected, self.dependency_provider)
        order = topological_order(affected, dependencies)

        executor = MultiPassExecutor(
            regen=self.regen,
            time_budget_ms=self.settings.time_budget_ms,
            clock=self.host.monotonic,
            yield_to_scheduler=self.host.yield_now,
            verify_tail=self.settings.verify_tail,
            on_chunk_done=self._record_done,
        )
        try:
            passes = await executor.run(order.keys)
        finally:
            # The mask only lives for one run
            self._mask = IsolationMask()

        report = CycleReport(
            cycle=cycle,
            order=order.keys,
            components=order.components,
            passes=passes,
        )
        self._last_report = report
        logger.info(
            f"Regeneration cycle {cycle} done: {passes.total_visits} regen call(s), "
            f"{passes.yields} yield(s), {len(passes.failures)} failure(s)"
        )
        return report

    def _record_done(self, key: ChunkKey) -> None:
        self._mask.record(chunk_rect(key, self.settings.chunk_size), key.level)

    # --- Introspection ---

    @property
    def isolation_mask(self) -> IsolationMask:
        """Isolation mask of the running cycle (empty between cycles)."""
        return self._mask

    @property
    def pending(self) -> list[ChunkKey]:
        """Chunks marked dirty and not yet drained."""
        return self._dirty.pending()

    @property
    def has_pending_tick(self) -> bool:
        return self._pending_tick is not None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def cycles_started(self) -> int:
        return self._cycles_started

    @property
    def last_report(self) -> CycleReport | None:
        return self._last_report
