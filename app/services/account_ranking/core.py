"""
Ranked account cache.

Holds one shard's balance-ordered account snapshot and serves pages
from it without touching the database per request.
"""

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loguru import logger

from app.config.constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_TOTAL_BALANCE,
    MAX_PAGE_SIZE,
    MAX_RANKED_ACCOUNTS,
)
from app.utils.pagination import page_bounds

from .schemas import AccountRow, AccountsPage, RankedAccount, percentage_of


if TYPE_CHECKING:
    from app.repositories.chain_store import ChainStore


@dataclass(frozen=True)
class RankedAccountSnapshot:
    """Immutable point-in-time ranking of one shard."""

    shard_number: int
    accounts: tuple[AccountRow, ...] = ()
    total_balance: int = DEFAULT_TOTAL_BALANCE
    built_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __len__(self) -> int:
        return len(self.accounts)


class RankedAccountCache:
    """
    Balance-ranked account snapshot of one shard.

    Rebuilds fetch into a fresh snapshot and replace the current one under
    a writer lock. Readers take the snapshot reference and never observe
    a half-built ranking.
    """

    def __init__(
        self,
        shard_number: int,
        max_accounts: int = MAX_RANKED_ACCOUNTS,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.shard_number = shard_number
        self.max_accounts = max_accounts
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

        self._write_lock = threading.Lock()
        self._snapshot = RankedAccountSnapshot(shard_number=shard_number)

    def snapshot(self) -> RankedAccountSnapshot:
        """Get the current snapshot."""
        return self._snapshot

    def account_count(self) -> int:
        return len(self._snapshot)

    def total_balance(self) -> int:
        return self._snapshot.total_balance

    async def fetch_accounts(self, store: "ChainStore") -> list[AccountRow]:
        """Fetch the shard's richest external accounts."""
        accounts = await store.get_ranked_accounts(self.shard_number, self.max_accounts)
        return [AccountRow.from_model(account) for account in accounts]

    async def rebuild(self, store: "ChainStore", total_balance: int | None = None) -> None:
        """
        Rebuild from the store.

        Args:
            store: Persistence facade
            total_balance: Shard total; fetched from the store when omitted
        """
        accounts = await self.fetch_accounts(store)
        if total_balance is None:
            totals = await store.get_total_balances()
            total_balance = totals.get(self.shard_number, DEFAULT_TOTAL_BALANCE)
        self.apply(accounts, total_balance)

    def apply(self, accounts: list[AccountRow], total_balance: int) -> RankedAccountSnapshot:
        """
        Replace the snapshot.

        Args:
            accounts: Rows ordered by descending balance
            total_balance: Shard aggregate balance

        Returns:
            The new snapshot
        """
        snapshot = RankedAccountSnapshot(
            shard_number=self.shard_number,
            accounts=tuple(accounts[: self.max_accounts]),
            total_balance=total_balance,
        )
        with self._write_lock:
            self._snapshot = snapshot

        logger.debug(
            f"[Ranking] Shard {self.shard_number}: {len(snapshot)} accounts, "
            f"total balance {total_balance}"
        )
        return snapshot

    def page(self, page_index: int, page_size: int = 0) -> AccountsPage:
        """
        Get one page of the ranking.

        Args:
            page_index: 0-based page index
            page_size: Entries per page, 0 for the default

        Returns:
            AccountsPage with absolute ranks
        """
        if page_size <= 0:
            page_size = self.default_page_size
        page_size = min(page_size, self.max_page_size)

        snapshot = self._snapshot
        page_index, begin, end = page_bounds(len(snapshot), page_index, page_size)

        ranked = tuple(
            RankedAccount(
                rank=index + 1,
                address=row.address,
                shard_number=row.shard_number,
                account_type=row.account_type,
                balance=row.balance,
                percentage=percentage_of(row.balance, snapshot.total_balance),
                tx_count=row.tx_count,
            )
            for index, row in enumerate(snapshot.accounts[begin:end], start=begin)
        )

        return AccountsPage(
            shard_number=self.shard_number,
            total_count=len(snapshot),
            begin=begin,
            end=end,
            page_index=page_index,
            total_balance=snapshot.total_balance,
            accounts=ranked,
        )
