"""
Chain Walker Core Service.

Main service class that combines all walker functionality.
Inherits from mixins to provide rollback, replay, reconciliation and
pending refresh.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from app.repositories.chain_store import ChainStore
from app.services.chain_client import ChainClient

from .pending_mixin import PendingMixin
from .reconcile_mixin import ReconcileMixin
from .replay_mixin import ReplayMixin
from .rollback_mixin import RollbackMixin


@dataclass
class SyncReport:
    """Outcome of one sync cycle."""

    shard_number: int
    cycle: int
    rolled_back: list[int] = field(default_factory=list)
    applied: list[int] = field(default_factory=list)
    pending: int = 0
    errors: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None

    @property
    def success(self) -> bool:
        """Check if every phase completed."""
        return not self.errors

    def to_dict(self) -> dict:
        """Serialize report for logs and health endpoints."""
        return {
            "success": self.success,
            "shard_number": self.shard_number,
            "cycle": self.cycle,
            "rolled_back": list(self.rolled_back),
            "applied": len(self.applied),
            "pending": self.pending,
            "errors": list(self.errors),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class ChainWalker(RollbackMixin, ReplayMixin, ReconcileMixin, PendingMixin):
    """
    Keeps one shard of the replica converged with its node.

    Each cycle runs, in order:
    - Rollback of stored blocks that diverge from the node
    - Forward replay up to the node tip
    - Replacement of the pending transaction set

    Node and store failures are logged and end only the current phase;
    the next cycle retries from the persisted state.
    """

    def __init__(
        self,
        client: ChainClient,
        store: ChainStore,
        shard_number: int,
        legacy_tick_skip: bool = False,
    ):
        """
        Initialize walker.

        Args:
            client: Node client of the shard
            store: Persistence facade
            shard_number: Shard number
            legacy_tick_skip: Let each finished cycle consume the next tick
        """
        self.client = client
        self.store = store
        self.shard_number = shard_number
        self.legacy_tick_skip = legacy_tick_skip

        self.sync_count = 0
        self.last_report: SyncReport | None = None
        self._cycle_errors: list[str] = []
        self._cycle_lock = asyncio.Lock()
        self._skip_next_tick = False

    def _phase_failed(self, phase: str, error: Exception) -> None:
        """Record a failed phase of the current cycle."""
        message = f"{phase}: {error}"
        logger.error(f"[Walker shard={self.shard_number}] {message}")
        self._cycle_errors.append(message)

    @property
    def is_syncing(self) -> bool:
        """Check if a cycle is running."""
        return self._cycle_lock.locked()

    async def sync_once(self) -> SyncReport:
        """
        Run one full convergence attempt.

        Returns:
            SyncReport of the cycle
        """
        report = SyncReport(shard_number=self.shard_number, cycle=self.sync_count)
        self._cycle_errors = report.errors
        logger.info(
            f"[Walker shard={self.shard_number} cycle={self.sync_count}] Begin sync"
        )

        report.rolled_back = await self.rollback_diverged_blocks()
        report.applied = await self.replay_forward()
        report.pending = await self.refresh_pending()

        report.finished_at = datetime.now(UTC)
        logger.info(
            f"[Walker shard={self.shard_number} cycle={self.sync_count}] End sync: "
            f"rolled back {len(report.rolled_back)}, applied {len(report.applied)}, "
            f"pending {report.pending}, errors {len(report.errors)}"
        )
        self.sync_count += 1
        self.last_report = report
        return report

    async def tick(self) -> SyncReport | None:
        """
        Handle one timer tick.

        Starts a cycle unless one is already running. In legacy mode the
        tick following a finished cycle is consumed without syncing.

        Returns:
            SyncReport, or None when the tick was skipped
        """
        if self._cycle_lock.locked():
            logger.warning(
                f"[Walker shard={self.shard_number}] Previous cycle still "
                f"running, skipping tick"
            )
            return None

        if self._skip_next_tick:
            self._skip_next_tick = False
            logger.debug(
                f"[Walker shard={self.shard_number}] Tick consumed after cycle"
            )
            return None

        async with self._cycle_lock:
            report = await self.sync_once()
        self._skip_next_tick = self.legacy_tick_skip
        return report

    async def run_forever(
        self, interval: float, stop_event: asyncio.Event | None = None
    ) -> None:
        """
        Tick once immediately, then once per interval until stopped.

        Args:
            interval: Tick interval in seconds
            stop_event: Ends the loop when set
        """
        stop_event = stop_event or asyncio.Event()
        logger.info(
            f"[Walker shard={self.shard_number}] Running every {interval}s"
        )

        while not stop_event.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except TimeoutError:
                continue

        logger.info(f"[Walker shard={self.shard_number}] Stopped")

    def schedule(self, scheduler: AsyncIOScheduler, interval: int) -> None:
        """
        Run forever on a fixed interval.

        The first cycle starts immediately, then one per tick. Cycles
        never overlap: a tick that finds a cycle running is dropped.

        Args:
            scheduler: Scheduler owning the job
            interval: Tick interval in seconds
        """
        scheduler.add_job(
            self.tick,
            "interval",
            seconds=interval,
            id=f"chain_sync_shard_{self.shard_number}",
            name=f"Chain sync shard {self.shard_number}",
            next_run_time=datetime.now(UTC),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info(
            f"[Walker shard={self.shard_number}] Scheduled every {interval}s"
        )
