"""
Job scheduler.

Owns the process-wide AsyncIOScheduler that drives the chain sync jobs
(one per connected shard) and the ranking rebuild job.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from app.services.account_ranking import AccountRankingService
from app.services.chain_walker import ChainWalker

# Global scheduler reference for shutdown
scheduler_instance: AsyncIOScheduler | None = None


def create_scheduler(
    walkers: list[ChainWalker],
    ranking: AccountRankingService,
    sync_interval: int,
    ranking_interval: int,
) -> AsyncIOScheduler:
    """
    Create scheduler with all indexer jobs registered.

    Args:
        walkers: One walker per connected shard
        ranking: Ranking service to rebuild
        sync_interval: Seconds between sync ticks
        ranking_interval: Seconds between ranking rebuilds

    Returns:
        Scheduler, not yet started
    """
    global scheduler_instance

    scheduler = AsyncIOScheduler(
        job_defaults={"max_instances": 1, "coalesce": True},
    )
    for walker in walkers:
        walker.schedule(scheduler, sync_interval)
    ranking.schedule(scheduler, ranking_interval)

    scheduler_instance = scheduler
    logger.info(
        f"Scheduler created with {len(walkers)} sync jobs and ranking rebuild"
    )
    return scheduler
