"""
Integration tests for the HTTP API.

Covers:
- Ranked account pages and envelope format
- Shard validation
- Account detail lookups
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from aiohttp import test_utils

from app.api import create_app
from app.models.enums import AccountType
from app.services.account_ranking import AccountRankingService, AccountRow
from app.utils.exceptions import StoreError
from tests.factories import ALICE, BOB


@pytest.fixture
def ranking_store():
    return AsyncMock()


@pytest.fixture
def service(ranking_store):
    service = AccountRankingService(ranking_store, [1, 2])
    service.caches[1].apply(
        [
            AccountRow(
                address=f"0x{index:040x}",
                shard_number=1,
                account_type=AccountType.EXTERNAL,
                balance=100 - index,
                tx_count=1,
            )
            for index in range(40)
        ],
        total_balance=3_220,
    )
    return service


@pytest_asyncio.fixture
async def api(service):
    client = test_utils.TestClient(test_utils.TestServer(create_app(service)))
    await client.start_server()

    yield client

    await client.close()


class TestAccountsEndpoint:
    """GET /api/v1/accounts."""

    @pytest.mark.asyncio
    async def test_default_page(self, api):
        response = await api.get("/api/v1/accounts")
        body = await response.json()

        assert response.status == 200
        assert body["code"] == 0
        assert body["message"] == ""
        page_info = body["data"]["pageInfo"]
        assert page_info == {
            "totalCount": 40,
            "begin": 0,
            "end": 25,
            "curPage": 1,
            "totalBalance": 3_220,
        }
        assert len(body["data"]["list"]) == 25
        assert body["data"]["list"][0]["rank"] == 1

    @pytest.mark.asyncio
    async def test_second_page_ranks(self, api):
        response = await api.get("/api/v1/accounts", params={"p": "2", "ps": "10", "s": "1"})
        body = await response.json()

        ranks = [entry["rank"] for entry in body["data"]["list"]]
        assert ranks == list(range(11, 21))
        assert body["data"]["pageInfo"]["curPage"] == 2

    @pytest.mark.asyncio
    async def test_empty_shard(self, api):
        response = await api.get("/api/v1/accounts", params={"s": "2"})
        body = await response.json()

        assert body["data"]["pageInfo"]["totalCount"] == 0
        assert body["data"]["pageInfo"]["totalBalance"] == 1
        assert body["data"]["list"] == []

    @pytest.mark.asyncio
    async def test_unknown_shard_rejected(self, api):
        response = await api.get("/api/v1/accounts", params={"s": "21"})
        body = await response.json()

        assert response.status == 400
        assert body["code"] != 0
        assert body["data"] is None

    @pytest.mark.asyncio
    async def test_malformed_params_use_defaults(self, api):
        response = await api.get("/api/v1/accounts", params={"p": "x", "ps": "-3"})
        body = await response.json()

        assert response.status == 200
        assert len(body["data"]["list"]) == 25


class TestAccountEndpoint:
    """GET /api/v1/account."""

    @pytest.mark.asyncio
    async def test_unknown_address_is_null(self, api, ranking_store):
        ranking_store.get_account.return_value = None

        response = await api.get("/api/v1/account", params={"address": ALICE})
        body = await response.json()

        assert response.status == 200
        assert body == {"code": 0, "message": "", "data": None}

    @pytest.mark.asyncio
    async def test_account_detail(self, api, ranking_store):
        ranking_store.get_account.return_value = SimpleNamespace(
            address=ALICE,
            shard_number=1,
            account_type=AccountType.EXTERNAL,
            balance=322,
            tx_count=1,
            mined_block_count=2,
        )
        ranking_store.get_transactions_by_address.return_value = [
            SimpleNamespace(
                hash="tx-1",
                shard_number=1,
                tx_type=0,
                block_height=9,
                from_address=BOB,
                to_address=ALICE,
                amount=5,
                fee=1,
                timestamp=1_700_000_000,
                pending=False,
                payload="",
            )
        ]
        ranking_store.get_pending_transactions_by_address.return_value = []

        response = await api.get("/api/v1/account", params={"address": ALICE})
        body = await response.json()

        data = body["data"]
        assert data["address"] == ALICE
        assert data["percentage"] == pytest.approx(0.1)
        assert data["minedBlockCount"] == 2
        assert data["txs"][0]["hash"] == "tx-1"
        assert data["txs"][0]["inorout"] is True

    @pytest.mark.asyncio
    async def test_store_failure(self, api, ranking_store):
        ranking_store.get_account.side_effect = StoreError("down")

        response = await api.get("/api/v1/account", params={"address": ALICE})

        assert response.status == 503

    @pytest.mark.asyncio
    async def test_shard_param_scopes_lookup(self, api, ranking_store):
        ranking_store.get_account.return_value = None

        await api.get("/api/v1/account", params={"address": ALICE, "s": "2"})
        ranking_store.get_account.assert_awaited_with(ALICE, 2)

        await api.get("/api/v1/account", params={"address": ALICE})
        ranking_store.get_account.assert_awaited_with(ALICE, None)
