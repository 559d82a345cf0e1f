"""
Indexer Initialization - Shutdown Module.

Stops the scheduler, HTTP servers and node clients, then closes
database connections.
"""

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from app.api import stop_api_server
from app.services.chain_client import ChainClient
from jobs.health import stop_health_server


async def shutdown_handler(
    scheduler: AsyncIOScheduler | None,
    runners: dict[str, web.AppRunner],
    clients: list[ChainClient],
    engine: AsyncEngine,
) -> None:
    """Handle graceful shutdown."""
    logger.info("Graceful shutdown initiated...")

    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

    if "api" in runners:
        await stop_api_server(runners["api"])
    if "health" in runners:
        await stop_health_server(runners["health"])

    for client in clients:
        await client.close()
    logger.info(f"Closed {len(clients)} node clients")

    await engine.dispose()
    logger.info("Database connections closed")

    logger.info("Graceful shutdown complete")
