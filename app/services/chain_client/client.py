"""
Chain node JSON-RPC client.

One client per shard. Every failure is raised as ChainClientError so the
caller can end the current phase and retry on the next cycle.
"""

import asyncio
import itertools
from typing import Any

import aiohttp
from loguru import logger

from app.config.constants import NODE_RPC_TIMEOUT
from app.services.chain_client.types import ChainTip, RemoteBlock, RemoteTransaction
from app.utils.exceptions import ChainClientConnectError, ChainClientError
from app.utils.security import mask_address


class ChainClient:
    """
    Async JSON-RPC client for a single shard node.

    Use `ChainClient.connect()` to build an instance: it fails fast when
    the node cannot be reached, so callers never hold an unusable client.
    """

    def __init__(
        self,
        rpc_url: str,
        shard_number: int,
        timeout: float = NODE_RPC_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            rpc_url: Node JSON-RPC endpoint
            shard_number: Shard served by the node
            timeout: Total timeout per request in seconds
            session: Optional aiohttp session (created lazily otherwise)
        """
        self.rpc_url = rpc_url
        self.shard_number = shard_number
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._ids = itertools.count(1)

    @classmethod
    async def connect(
        cls,
        rpc_url: str,
        shard_number: int,
        timeout: float = NODE_RPC_TIMEOUT,
    ) -> "ChainClient":
        """
        Create client and verify the node answers.

        Args:
            rpc_url: Node JSON-RPC endpoint
            shard_number: Shard served by the node
            timeout: Total timeout per request in seconds

        Returns:
            Connected ChainClient

        Raises:
            ChainClientConnectError: If the node cannot be reached
        """
        client = cls(rpc_url, shard_number, timeout=timeout)
        try:
            tip = await client.current_tip()
        except ChainClientError as e:
            await client.close()
            raise ChainClientConnectError(
                f"Shard {shard_number}: cannot connect to {rpc_url}: {e}"
            ) from e

        logger.info(
            f"[ChainClient shard={shard_number}] Connected to {rpc_url} "
            f"(tip height {tip.height})"
        )
        return client

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def _rpc_call(self, method: str, params: list[Any]) -> Any:
        """
        Make JSON-RPC call.

        Args:
            method: RPC method name
            params: RPC parameters

        Returns:
            The `result` member of the response

        Raises:
            ChainClientError: On transport, HTTP or RPC error
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        try:
            session = await self._get_session()
            async with session.post(
                self.rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            ) as response:
                if response.status != 200:
                    raise ChainClientError(
                        f"{method}: HTTP {response.status}"
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ChainClientError(f"{method}: {e}") from e

        if not isinstance(data, dict):
            raise ChainClientError(f"{method}: malformed response")
        if data.get("error"):
            raise ChainClientError(f"{method}: {data['error']}")
        return data.get("result")

    async def current_tip(self) -> ChainTip:
        """
        Get current chain head.

        Returns:
            ChainTip with height and hash

        Raises:
            ChainClientError: On RPC failure or malformed answer
        """
        info = await self._rpc_call("seele_getInfo", [])
        if not isinstance(info, dict) or "CurrentBlockHeight" not in info:
            raise ChainClientError("seele_getInfo: missing CurrentBlockHeight")
        try:
            height = int(info["CurrentBlockHeight"])
        except (TypeError, ValueError) as e:
            raise ChainClientError(f"seele_getInfo: bad height: {e}") from e
        return ChainTip(height=height, hash=info.get("HeaderHash") or "")

    async def block_at_height(
        self, height: int, include_txs: bool = True
    ) -> RemoteBlock:
        """
        Get block by height.

        Args:
            height: Block height
            include_txs: Include full transaction objects

        Returns:
            RemoteBlock

        Raises:
            ChainClientError: On RPC failure, missing or malformed block
        """
        result = await self._rpc_call("seele_getBlockByHeight", [height, include_txs])
        if not isinstance(result, dict):
            raise ChainClientError(f"Block {height} not found on shard {self.shard_number}")
        try:
            return RemoteBlock.from_rpc(result, self.shard_number)
        except (TypeError, ValueError) as e:
            raise ChainClientError(f"Block {height}: malformed: {e}") from e

    async def balance_of(self, address: str) -> int:
        """
        Get authoritative balance of an address.

        Args:
            address: Account address

        Returns:
            Balance in the smallest unit

        Raises:
            ChainClientError: On RPC failure or malformed answer
        """
        result = await self._rpc_call("seele_getBalance", [address, "", -1])
        balance = result.get("Balance") if isinstance(result, dict) else result
        try:
            return int(balance)
        except (TypeError, ValueError) as e:
            raise ChainClientError(
                f"seele_getBalance {mask_address(address)}: bad balance: {e}"
            ) from e

    async def pending_transactions(self) -> list[RemoteTransaction]:
        """
        Get transactions currently in the node mempool.

        Returns:
            List of pending transactions

        Raises:
            ChainClientError: On RPC failure or malformed answer
        """
        result = await self._rpc_call("debug_getPendingTransactions", [])
        if result is None:
            return []
        if not isinstance(result, list):
            raise ChainClientError("debug_getPendingTransactions: expected a list")
        try:
            return [
                RemoteTransaction.from_rpc(tx, self.shard_number, pending=True)
                for tx in result
                if isinstance(tx, dict)
            ]
        except (TypeError, ValueError) as e:
            raise ChainClientError(f"Pending transactions: malformed: {e}") from e
