"""
Unit tests for the scrape scheduler.
"""

import asyncio

import pytest

from service_exporter.app.scheduler import ScrapeScheduler


class BlockingOrchestrator:
    """Orchestrator whose passes never finish on their own."""

    def __init__(self):
        self.started = 0
        self.release = asyncio.Event()

    async def run_pass(self):
        self.started += 1
        await self.release.wait()


class FailingOrchestrator:
    def __init__(self):
        self.calls = 0

    async def run_pass(self):
        self.calls += 1
        raise RuntimeError("pass blew up")


class TestScrapeScheduler:
    """Test cases for ScrapeScheduler."""

    @pytest.mark.asyncio
    async def test_first_pass_starts_immediately(self):
        orchestrator = BlockingOrchestrator()
        scheduler = ScrapeScheduler(orchestrator, interval=3600)

        await scheduler.start()
        await asyncio.sleep(0)

        assert scheduler.ticks == 1
        assert orchestrator.started == 1
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_passes_overlap(self):
        orchestrator = BlockingOrchestrator()
        scheduler = ScrapeScheduler(orchestrator, interval=0.01)

        await scheduler.start()
        await asyncio.sleep(0.1)

        assert scheduler.ticks >= 3
        assert scheduler.in_flight == scheduler.ticks
        assert orchestrator.started >= scheduler.ticks - 1

        await scheduler.stop()
        assert scheduler.in_flight == 0

    @pytest.mark.asyncio
    async def test_finished_passes_are_forgotten(self):
        orchestrator = BlockingOrchestrator()
        orchestrator.release.set()
        scheduler = ScrapeScheduler(orchestrator, interval=3600)

        await scheduler.start()
        await asyncio.sleep(0.01)

        assert scheduler.in_flight == 0
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_failing_pass_does_not_stop_ticking(self):
        orchestrator = FailingOrchestrator()
        scheduler = ScrapeScheduler(orchestrator, interval=0.01)

        await scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert orchestrator.calls >= 2
        assert not scheduler.running
