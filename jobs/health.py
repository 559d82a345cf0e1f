"""
Health check server for indexer monitoring.

Provides HTTP endpoints for scheduler and per-shard sync status.
"""

import asyncio

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from app.services.chain_walker import ChainWalker

# Global references for health checks
_scheduler: AsyncIOScheduler | None = None
_walkers: list[ChainWalker] = []


def set_scheduler(scheduler: AsyncIOScheduler) -> None:
    """
    Set the scheduler instance for health checks.

    Args:
        scheduler: AsyncIOScheduler instance to monitor
    """
    global _scheduler
    _scheduler = scheduler
    logger.info("Scheduler registered for health checks")


def set_walkers(walkers: list[ChainWalker]) -> None:
    """Register shard walkers whose last cycle is reported."""
    global _walkers
    _walkers = list(walkers)


def _walker_status(walker: ChainWalker) -> dict:
    report = walker.last_report
    return {
        "shard_number": walker.shard_number,
        "syncing": walker.is_syncing,
        "cycles": walker.sync_count,
        "last_report": report.to_dict() if report else None,
    }


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with scheduler and shard status
    """
    if _scheduler is None:
        return web.json_response(
            {
                "status": "unhealthy",
                "error": "Scheduler not initialized",
            },
            status=503,
        )

    is_running = _scheduler.running
    jobs = _scheduler.get_jobs()
    job_info = [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        }
        for job in jobs
    ]

    return web.json_response(
        {
            "status": "healthy" if is_running else "stopped",
            "scheduler_running": is_running,
            "jobs_count": len(jobs),
            "jobs": job_info,
            "shards": [_walker_status(walker) for walker in _walkers],
        }
    )


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Readiness check endpoint.

    Ready once the scheduler runs and at least one shard is connected.
    """
    if _scheduler is None or not _scheduler.running or not _walkers:
        return web.json_response(
            {
                "status": "not_ready",
                "ready": False,
            },
            status=503,
        )

    return web.json_response(
        {
            "status": "ready",
            "ready": True,
        }
    )


async def liveness_handler(request: web.Request) -> web.Response:
    """Liveness check endpoint."""
    return web.json_response(
        {
            "status": "alive",
            "alive": True,
        }
    )


def create_health_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
    return app


async def start_health_server(
    host: str = "0.0.0.0",
    port: int = 8081,
) -> tuple[web.AppRunner, web.TCPSite]:
    """
    Start health check server.

    Args:
        host: Host to bind to
        port: Port to bind to

    Returns:
        Tuple of (AppRunner, TCPSite) for cleanup
    """
    runner = web.AppRunner(create_health_app())
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Health check server started on {host}:{port}")
    return runner, site


async def stop_health_server(
    runner: web.AppRunner,
    timeout: int = 5,
) -> None:
    """
    Stop health check server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("Stopping health check server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("Health check server stopped successfully")
    except TimeoutError:
        logger.warning(f"Health check server cleanup timed out after {timeout}s")
