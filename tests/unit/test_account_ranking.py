"""
Tests for ranked account snapshots.

Covers:
- Page bounds and clamping
- Absolute ranks and balance percentages
- Snapshot replacement
- Service rebuild defaults and account detail assembly
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from app.models.enums import AccountType, TransactionType
from app.services.account_ranking import (
    AccountRankingService,
    AccountRow,
    RankedAccountCache,
    page_bounds,
)
from app.utils.exceptions import StoreError


def rows(count: int, shard_number: int = 1) -> list[AccountRow]:
    """Accounts with balances count, count-1, ..., 1."""
    return [
        AccountRow(
            address=f"0x{index:040x}",
            shard_number=shard_number,
            account_type=AccountType.EXTERNAL,
            balance=count - index,
            tx_count=index,
        )
        for index in range(count)
    ]


def account(address: str, account_type=AccountType.EXTERNAL, balance: int = 50):
    return SimpleNamespace(
        address=address,
        shard_number=1,
        account_type=account_type,
        balance=balance,
        tx_count=2,
        mined_block_count=0,
    )


def transaction(tx_hash: str, from_address: str, to_address: str, **kwargs):
    data = dict(
        hash=tx_hash,
        shard_number=1,
        tx_type=TransactionType.TRANSFER,
        block_height=5,
        from_address=from_address,
        to_address=to_address,
        amount=1,
        fee=0,
        timestamp=1_700_000_000,
        pending=False,
        payload="",
    )
    data.update(kwargs)
    return SimpleNamespace(**data)


class TestPageBounds:
    """Page bounds never leave the snapshot."""

    @pytest.mark.parametrize("length", [0, 1, 2, 24, 25, 26, 99, 250])
    @pytest.mark.parametrize("page_index", [0, 1, 3, 50])
    @pytest.mark.parametrize("page_size", [1, 10, 25])
    def test_bounds_invariant(self, length, page_index, page_size):
        _, begin, end = page_bounds(length, page_index, page_size)

        assert 0 <= begin <= end <= max(length - 1, 0)
        assert end - begin <= page_size

    def test_first_page(self):
        assert page_bounds(100, 0, 25) == (0, 0, 25)

    def test_page_past_end_falls_back_to_last_page(self):
        assert page_bounds(60, 9, 25) == (2, 50, 59)

    def test_negative_page_is_first_page(self):
        assert page_bounds(60, -4, 25) == (0, 0, 25)

    def test_empty_snapshot(self):
        assert page_bounds(0, 0, 25) == (0, 0, 0)


class TestRankedAccountCache:
    """Page content of a cache."""

    def test_ranks_are_absolute(self):
        cache = RankedAccountCache(1)
        cache.apply(rows(60), total_balance=1_830)

        page = cache.page(1, 25)

        assert [entry.rank for entry in page.accounts] == list(range(26, 51))
        assert page.accounts[0].balance == 35
        assert page.total_count == 60

    def test_page_size_defaults_and_clamps(self):
        cache = RankedAccountCache(1, default_page_size=25, max_page_size=100)
        cache.apply(rows(500), total_balance=1)

        assert len(cache.page(0, 0).accounts) == 25
        assert len(cache.page(0, 1_000).accounts) == 100

    def test_rank_never_exceeds_count(self):
        cache = RankedAccountCache(1)
        cache.apply(rows(30), total_balance=465)

        for index in range(5):
            page = cache.page(index, 7)
            assert all(entry.rank <= 30 for entry in page.accounts)

    def test_percentages_sum_to_at_most_one(self):
        accounts = rows(200)
        total = sum(row.balance for row in accounts)
        cache = RankedAccountCache(1)
        cache.apply(accounts, total_balance=total)

        percentages = []
        for index in range(8):
            percentages.extend(e.percentage for e in cache.page(index, 25).accounts)

        assert sum(percentages) <= 1.0 + 1e-9
        assert cache.page(0, 1).accounts[0].percentage == pytest.approx(200 / total)

    def test_snapshot_capped_at_max_accounts(self):
        cache = RankedAccountCache(1, max_accounts=10)
        cache.apply(rows(50), total_balance=1)

        assert cache.account_count() == 10

    def test_apply_swaps_snapshot(self):
        cache = RankedAccountCache(1)
        old = cache.apply(rows(3), total_balance=6)

        new = cache.apply(rows(5), total_balance=15)

        assert cache.snapshot() is new
        assert len(old) == 3
        assert cache.total_balance() == 15

    @pytest.mark.asyncio
    async def test_rebuild_defaults_missing_total(self):
        store = AsyncMock()
        store.get_ranked_accounts.return_value = [account("0xa", balance=5)]
        store.get_total_balances.return_value = {2: 99}
        cache = RankedAccountCache(1)

        await cache.rebuild(store)

        assert cache.total_balance() == 1
        store.get_ranked_accounts.assert_awaited_once_with(1, 10_000)


class TestAccountRankingService:
    """Service over per-shard caches."""

    @pytest.mark.asyncio
    async def test_rebuild_all_uses_one_total_query(self):
        store = AsyncMock()
        store.get_ranked_accounts.return_value = [account("0xa", balance=10)]
        store.get_total_balances.return_value = {1: 40}
        service = AccountRankingService(store, [1, 2])

        rebuilt = await service.rebuild_all()

        assert rebuilt == {1: 1, 2: 1}
        store.get_total_balances.assert_awaited_once()
        assert service.get_total_balance(1) == 40
        assert service.get_total_balance(2) == 1

    @pytest.mark.asyncio
    async def test_failed_shard_keeps_previous_snapshot(self):
        store = AsyncMock()
        store.get_total_balances.return_value = {1: 10}
        store.get_ranked_accounts.side_effect = StoreError("down")
        service = AccountRankingService(store, [1])
        previous = service.caches[1].apply(rows(3), total_balance=6)

        rebuilt = await service.rebuild_all()

        assert rebuilt == {}
        assert service.caches[1].snapshot() is previous

    def test_pages_are_one_based(self):
        service = AccountRankingService(AsyncMock(), [1])
        service.caches[1].apply(rows(60), total_balance=1)

        assert service.get_accounts_page(1, 1, 25).begin == 0
        assert service.get_accounts_page(1, 0, 25).begin == 0
        page = service.get_accounts_page(1, 2, 25)
        assert page.begin == 25
        assert page.to_dict()["pageInfo"]["curPage"] == 2

    def test_unknown_shard_raises(self):
        service = AccountRankingService(AsyncMock(), [1])

        with pytest.raises(KeyError):
            service.get_accounts_page(7, 1)

    @pytest.mark.asyncio
    async def test_account_detail_prepends_pending(self):
        store = AsyncMock()
        store.get_account.return_value = account("0xa", balance=25)
        store.get_transactions_by_address.return_value = [
            transaction("t2", "0xa", "0xb"),
            transaction("t1", "0xb", "0xa"),
        ]
        store.get_pending_transactions_by_address.return_value = [
            transaction("p1", "0xa", "0xc", pending=True, block_height=0),
        ]
        service = AccountRankingService(store, [1], tx_limit=25)
        service.caches[1].apply([], total_balance=100)

        detail = await service.get_account_detail("0xa")

        assert [tx.hash for tx in detail.transactions] == ["p1", "t2", "t1"]
        assert [tx.incoming for tx in detail.transactions] == [False, False, True]
        assert detail.percentage == pytest.approx(0.25)
        store.get_transactions_by_address.assert_awaited_once_with("0xa", 25, 1)
        store.get_pending_transactions_by_address.assert_awaited_once_with("0xa", 1)

    @pytest.mark.asyncio
    async def test_account_detail_contract_creation_code(self):
        store = AsyncMock()
        store.get_account.return_value = account("0xa")
        store.get_transactions_by_address.return_value = [
            transaction(
                "deploy", "0xa", "", tx_type=TransactionType.CONTRACT_CREATION, payload="0x6060"
            ),
        ]
        store.get_pending_transactions_by_address.return_value = []
        service = AccountRankingService(store, [1])

        detail = await service.get_account_detail("0xa")

        assert detail.contract_creation_code == "0x6060"
        assert detail.to_dict()["contractCreationCode"] == "0x6060"

    @pytest.mark.asyncio
    async def test_account_detail_none_for_contract_or_unknown(self):
        store = AsyncMock()
        service = AccountRankingService(store, [1])

        store.get_account.return_value = None
        assert await service.get_account_detail("0xmissing") is None

        store.get_account.return_value = account("0xc", AccountType.CONTRACT)
        assert await service.get_account_detail("0xc") is None
        store.get_transactions_by_address.assert_not_awaited()
