"""
Asyncio implementation of SchedulerHost.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)


class AsyncioHost:
    """SchedulerHost backed by the running asyncio event loop.

    Ticks map to ``loop.call_soon``, timers to ``loop.call_later`` and
    yielding to ``asyncio.sleep(0)``. Spawned cycles are kept referenced
    until they finish so they are not garbage collected mid-run.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop
        self._tasks: set[asyncio.Task] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def monotonic(self) -> float:
        return time.perf_counter()

    def call_soon(self, callback: Callable[[], None]) -> asyncio.Handle:
        return self.loop.call_soon(callback)

    def call_later(
        self, delay: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = self.loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Scheduled cycle failed: {type(task.exception()).__name__}: {task.exception()}"
            )

    async def yield_now(self) -> None:
        await asyncio.sleep(0)

    async def drain(self) -> None:
        """Wait for every spawned cycle to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
