"""
Tests for the walker run loop.

Covers:
- Single-flight ticks (a running cycle drops overlapping ticks)
- Legacy cadence where a finished cycle consumes the next tick
- Scheduler job registration
- Phase failure bookkeeping
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.chain_walker import ChainWalker, SyncReport
from app.utils.exceptions import ChainClientError


@pytest.fixture
def walker():
    """Walker with mocked collaborators."""
    return ChainWalker(AsyncMock(), AsyncMock(), shard_number=3)


class TestTick:
    """Tick handling."""

    @pytest.mark.asyncio
    async def test_tick_runs_cycle(self, walker):
        report = SyncReport(shard_number=3, cycle=0)
        walker.sync_once = AsyncMock(return_value=report)

        result = await walker.tick()

        assert result is report
        walker.sync_once.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_overlapping_tick_is_skipped(self, walker):
        """A tick arriving while a cycle runs does not start another."""
        release = asyncio.Event()
        started = asyncio.Event()
        report = SyncReport(shard_number=3, cycle=0)

        async def slow_cycle():
            started.set()
            await release.wait()
            return report

        walker.sync_once = AsyncMock(side_effect=slow_cycle)

        first = asyncio.create_task(walker.tick())
        await started.wait()
        assert walker.is_syncing

        skipped = await walker.tick()
        release.set()
        completed = await first

        assert skipped is None
        assert completed is report
        assert walker.sync_once.await_count == 1
        assert not walker.is_syncing

    @pytest.mark.asyncio
    async def test_consecutive_ticks_each_run(self, walker):
        walker.sync_once = AsyncMock(return_value=SyncReport(shard_number=3, cycle=0))

        await walker.tick()
        await walker.tick()

        assert walker.sync_once.await_count == 2

    @pytest.mark.asyncio
    async def test_legacy_cadence_consumes_next_tick(self):
        walker = ChainWalker(AsyncMock(), AsyncMock(), 3, legacy_tick_skip=True)
        walker.sync_once = AsyncMock(return_value=SyncReport(shard_number=3, cycle=0))

        results = [await walker.tick() for _ in range(4)]

        assert [r is not None for r in results] == [True, False, True, False]
        assert walker.sync_once.await_count == 2


class TestRunForever:
    """In-process loop."""

    @pytest.mark.asyncio
    async def test_first_cycle_runs_immediately(self, walker):
        stop = asyncio.Event()

        async def cycle():
            stop.set()
            return SyncReport(shard_number=3, cycle=0)

        walker.sync_once = AsyncMock(side_effect=cycle)

        await asyncio.wait_for(walker.run_forever(60, stop), timeout=5)

        walker.sync_once.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ticks_until_stopped(self, walker):
        stop = asyncio.Event()
        reports = []

        async def cycle():
            reports.append(SyncReport(shard_number=3, cycle=len(reports)))
            if len(reports) == 3:
                stop.set()
            return reports[-1]

        walker.sync_once = AsyncMock(side_effect=cycle)

        await asyncio.wait_for(walker.run_forever(0.01, stop), timeout=5)

        assert walker.sync_once.await_count == 3

    @pytest.mark.asyncio
    async def test_legacy_cadence_in_loop(self):
        walker = ChainWalker(AsyncMock(), AsyncMock(), 3, legacy_tick_skip=True)
        stop = asyncio.Event()
        ticks = 0
        original_tick = walker.tick

        async def counting_tick():
            nonlocal ticks
            ticks += 1
            if ticks == 4:
                stop.set()
            return await original_tick()

        walker.tick = counting_tick
        walker.sync_once = AsyncMock(return_value=SyncReport(shard_number=3, cycle=0))

        await asyncio.wait_for(walker.run_forever(0.01, stop), timeout=5)

        assert walker.sync_once.await_count == 2


class TestSchedule:
    """Scheduler registration."""

    def test_schedule_registers_interval_job(self, walker):
        scheduler = MagicMock()

        walker.schedule(scheduler, 10)

        scheduler.add_job.assert_called_once()
        args, kwargs = scheduler.add_job.call_args
        assert args == (walker.tick, "interval")
        assert kwargs["seconds"] == 10
        assert kwargs["id"] == "chain_sync_shard_3"
        assert kwargs["max_instances"] == 1
        assert kwargs["coalesce"] is True
        assert kwargs["next_run_time"] is not None


class TestSyncOnce:
    """Cycle bookkeeping with mocked phases."""

    @pytest.mark.asyncio
    async def test_report_collects_phase_errors(self, walker):
        async def failing_rollback():
            walker._phase_failed("rollback", ChainClientError("timeout"))
            return []

        walker.rollback_diverged_blocks = AsyncMock(side_effect=failing_rollback)
        walker.replay_forward = AsyncMock(return_value=[7, 8])
        walker.refresh_pending = AsyncMock(return_value=4)

        report = await walker.sync_once()

        assert report.errors == ["rollback: timeout"]
        assert report.applied == [7, 8]
        assert report.pending == 4
        assert report.finished_at is not None
        assert walker.last_report is report
        assert walker.sync_count == 1

    @pytest.mark.asyncio
    async def test_errors_reset_between_cycles(self, walker):
        walker.rollback_diverged_blocks = AsyncMock(return_value=[])
        walker.replay_forward = AsyncMock(return_value=[])
        walker.refresh_pending = AsyncMock(return_value=0)
        walker._phase_failed("replay", ChainClientError("stale"))

        report = await walker.sync_once()

        assert report.success
        assert report.to_dict()["cycle"] == 0
