"""
Account ranking service.

Owns one ranked cache per shard and exposes the read accessors used by
the serving layer.
"""

from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from app.config.constants import (
    ACCOUNT_TX_LIST_LIMIT,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TOTAL_BALANCE,
    MAX_PAGE_SIZE,
    MAX_RANKED_ACCOUNTS,
)
from app.models.enums import AccountType
from app.utils.exceptions import TRANSIENT_ERRORS
from app.utils.security import mask_address

from .core import RankedAccountCache
from .schemas import AccountDetail, AccountsPage


if TYPE_CHECKING:
    from app.repositories.chain_store import ChainStore


class AccountRankingService:
    """Per-shard ranked account listings and account details."""

    def __init__(
        self,
        store: "ChainStore",
        shard_numbers: list[int],
        max_accounts: int = MAX_RANKED_ACCOUNTS,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
        tx_limit: int = ACCOUNT_TX_LIST_LIMIT,
    ):
        self.store = store
        self.tx_limit = tx_limit
        self.caches: dict[int, RankedAccountCache] = {
            shard: RankedAccountCache(
                shard,
                max_accounts=max_accounts,
                default_page_size=default_page_size,
                max_page_size=max_page_size,
            )
            for shard in shard_numbers
        }

    @property
    def shard_numbers(self) -> list[int]:
        return list(self.caches)

    def has_shard(self, shard_number: int) -> bool:
        return shard_number in self.caches

    async def rebuild_all(self) -> dict[int, int]:
        """
        Rebuild every shard's snapshot.

        Totals come from one cross-shard aggregation. A shard without a
        total is ranked against 1. A failing shard keeps its previous
        snapshot.

        Returns:
            Ranked account count per rebuilt shard
        """
        try:
            totals = await self.store.get_total_balances()
        except TRANSIENT_ERRORS as e:
            logger.error(f"[Ranking] Failed to fetch total balances: {e}")
            return {}

        rebuilt: dict[int, int] = {}
        for shard, cache in self.caches.items():
            try:
                accounts = await cache.fetch_accounts(self.store)
            except TRANSIENT_ERRORS as e:
                logger.error(f"[Ranking] Shard {shard} rebuild failed: {e}")
                continue

            snapshot = cache.apply(
                accounts, totals.get(shard, DEFAULT_TOTAL_BALANCE)
            )
            rebuilt[shard] = len(snapshot)

        logger.debug(f"[Ranking] Rebuilt {len(rebuilt)}/{len(self.caches)} shards")
        return rebuilt

    def schedule(self, scheduler: AsyncIOScheduler, interval: int) -> None:
        """Rebuild all shards on a fixed interval."""
        scheduler.add_job(
            self.rebuild_all,
            "interval",
            seconds=interval,
            id="account_ranking",
            name="Account ranking rebuild",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info(f"[Ranking] Scheduled every {interval}s")

    def get_accounts_page(
        self, shard_number: int, page: int, page_size: int = 0
    ) -> AccountsPage:
        """
        Get a ranked page.

        Args:
            shard_number: Shard number
            page: 1-based page number, values below 1 mean the first page
            page_size: Entries per page, 0 for the default

        Raises:
            KeyError: Unknown shard
        """
        page_index = page - 1 if page >= 1 else 0
        return self.caches[shard_number].page(page_index, page_size)

    def get_total_balance(self, shard_number: int) -> int:
        return self.caches[shard_number].total_balance()

    async def get_account_detail(
        self, address: str, shard_number: int | None = None
    ) -> AccountDetail | None:
        """
        Get an external account with its recent transactions.

        Pending transactions come first, followed by the newest persisted
        ones. Both lists are limited to the account's shard.

        Args:
            address: Account address
            shard_number: Shard of the account, the lowest holding shard when None

        Returns:
            AccountDetail, or None for unknown and contract accounts
        """
        account = await self.store.get_account(address, shard_number)
        if account is None or account.account_type != AccountType.EXTERNAL:
            logger.debug(f"[Ranking] No external account {mask_address(address)}")
            return None

        transactions = await self.store.get_transactions_by_address(
            address, self.tx_limit, account.shard_number
        )
        pending = await self.store.get_pending_transactions_by_address(
            address, account.shard_number
        )

        cache = self.caches.get(account.shard_number)
        total_balance = cache.total_balance() if cache else 0

        return AccountDetail.build(account, [*pending, *transactions], total_balance)
