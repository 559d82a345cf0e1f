"""
Indexer main entry point.

Connects one node client per configured shard, then runs the chain sync
and ranking jobs alongside the health and API servers until a shutdown
signal arrives.
"""

import asyncio
import signal
import sys

from loguru import logger

from app.api import start_api_server
from app.config.database import create_engine, create_session_maker
from app.config.settings import settings
from app.repositories.chain_store import ChainStore
from app.services.account_ranking import AccountRankingService
from app.services.chain_client import ChainClient
from app.services.chain_walker import ChainWalker
from app.utils.exceptions import ChainClientConnectError
from jobs.health import set_scheduler, set_walkers, start_health_server
from jobs.initialization.logging import setup_logging
from jobs.initialization.shutdown import shutdown_handler
from jobs.scheduler import create_scheduler


async def connect_clients(node_urls: dict[int, str]) -> list[ChainClient]:
    """
    Connect one client per shard.

    A shard whose node cannot be reached is skipped.
    """
    clients: list[ChainClient] = []
    for shard_number, url in sorted(node_urls.items()):
        try:
            client = await ChainClient.connect(
                url, shard_number, timeout=settings.rpc_timeout
            )
        except ChainClientConnectError as e:
            logger.error(f"Skipping shard {shard_number}: {e}")
            continue
        clients.append(client)
    return clients


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass


async def main() -> None:
    """Initialize and run the indexer."""
    setup_logging()

    engine = create_engine()
    store = ChainStore(create_session_maker(engine))

    clients = await connect_clients(settings.get_node_urls())
    if not clients:
        logger.warning("No shard node reachable, only serving stored data")

    walkers = [
        ChainWalker(
            client,
            store,
            client.shard_number,
            legacy_tick_skip=settings.sync_legacy_tick_skip,
        )
        for client in clients
    ]
    ranking = AccountRankingService(
        store,
        settings.get_shard_numbers(),
        max_accounts=settings.max_ranked_accounts,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
        tx_limit=settings.account_tx_limit,
    )
    await ranking.rebuild_all()

    scheduler = create_scheduler(
        walkers, ranking, settings.sync_interval, settings.ranking_refresh_interval
    )
    runners = {}
    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)

    try:
        scheduler.start()
        set_scheduler(scheduler)
        set_walkers(walkers)

        runners["health"], _ = await start_health_server(
            port=settings.health_check_port
        )
        runners["api"], _ = await start_api_server(
            ranking, host=settings.api_host, port=settings.api_port
        )

        logger.info("Indexer started successfully")
        await stop_event.wait()
    finally:
        await shutdown_handler(scheduler, runners, clients, engine)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Indexer stopped by user (KeyboardInterrupt)")
    except Exception as e:
        logger.exception(f"Indexer crashed: {e}")
        sys.exit(1)
