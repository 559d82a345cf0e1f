"""
API server.

Serves ranked account listings and account details over HTTP.
"""

import asyncio

from aiohttp import web
from loguru import logger

from app.services.account_ranking import AccountRankingService

from .handlers import get_account, get_accounts, ranking_service_key


def create_app(service: AccountRankingService) -> web.Application:
    """
    Build the API application.

    Args:
        service: Ranking service backing the endpoints

    Returns:
        aiohttp application
    """
    app = web.Application()
    app[ranking_service_key] = service
    app.add_routes(
        [
            web.get("/api/v1/accounts", get_accounts),
            web.get("/api/v1/account", get_account),
        ]
    )
    return app


async def start_api_server(
    service: AccountRankingService,
    host: str = "0.0.0.0",
    port: int = 8000,
) -> tuple[web.AppRunner, web.TCPSite]:
    """
    Start API server.

    Returns:
        Tuple of (AppRunner, TCPSite) for cleanup
    """
    runner = web.AppRunner(create_app(service))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"API server started on {host}:{port}")
    return runner, site


async def stop_api_server(runner: web.AppRunner, timeout: int = 5) -> None:
    """Stop API server gracefully."""
    logger.info("Stopping API server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("API server stopped")
    except TimeoutError:
        logger.warning(f"API server cleanup timed out after {timeout}s")
