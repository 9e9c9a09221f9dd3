"""
Periodic scrape scheduler.
"""

import asyncio
from typing import Optional, Set

from shared.logging import get_logger

from .fetch.orchestrator import FetchOrchestrator


class ScrapeScheduler:
    """Starts a scrape pass every ``interval`` seconds.

    The first pass starts immediately. A new pass is started on every tick
    whether or not the previous one has finished, so passes can overlap.
    """

    def __init__(self, orchestrator: FetchOrchestrator, interval: float = 60):
        self.orchestrator = orchestrator
        self.interval = interval
        self.logger = get_logger("exporter.scheduler")

        self.running = False
        self.ticks = 0
        self._loop_task: Optional[asyncio.Task] = None
        self._passes: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._passes)

    async def start(self):
        """Start the scheduler. The first pass is started before this returns."""
        self.running = True
        self.tick()
        self._loop_task = asyncio.create_task(self._tick_loop())
        self.logger.info("Scrape scheduler started", interval=self.interval)

    async def stop(self):
        """Stop ticking and cancel passes still running."""
        self.running = False
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass

        for task in list(self._passes):
            task.cancel()
        if self._passes:
            await asyncio.gather(*self._passes, return_exceptions=True)

        self.logger.info("Scrape scheduler stopped")

    def tick(self) -> asyncio.Task:
        """Start one pass without waiting for it."""
        if self._passes:
            self.logger.warning("Previous scrape pass still running", in_flight=len(self._passes))

        self.ticks += 1
        task = asyncio.create_task(self._run_pass())
        self._passes.add(task)
        task.add_done_callback(self._passes.discard)
        return task

    async def _tick_loop(self):
        while self.running:
            await asyncio.sleep(self.interval)
            self.tick()

    async def _run_pass(self):
        try:
            await self.orchestrator.run_pass()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error("Scrape pass failed", error=str(e), exc_info=True)
