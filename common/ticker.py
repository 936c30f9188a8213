from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Fire ``tick`` every ``interval_s`` seconds, like a browser interval timer.

    Each tick runs as its own task, so a slow tick does not delay the next one;
    callers guard overlapping work themselves.
    """

    def __init__(self, interval_s: float, tick: Callable[[], Awaitable[object]], name: str) -> None:
        self.interval_s = interval_s
        self.name = name
        self._tick = tick
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning("%s already running", self.name)
            return
        self._task = asyncio.create_task(self._run_loop(), name=self.name)
        logger.info("%s started (every %.2fs)", self.name, self.interval_s)

    async def stop(self) -> None:
        """Stop firing; ticks already running are awaited, not cancelled."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        logger.info("%s stopped", self.name)

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            task = asyncio.create_task(self._run_tick())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _run_tick(self) -> None:
        try:
            await self._tick()
        except Exception:
            logger.exception("Tick of %s failed", self.name)
