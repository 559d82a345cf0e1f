"""
Chain store.

Typed persistence facade used by the chain walker and the ranking cache.
Every operation acquires its own session from the factory, runs the
repository calls and commits, so no connection handle is shared between
operations.
"""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.account import Account
from app.models.block import Block
from app.models.enums import AccountType
from app.models.transaction import PendingTransaction, Transaction
from app.repositories.account_repository import AccountRepository
from app.repositories.block_repository import BlockRepository
from app.repositories.transaction_repository import (
    PendingTransactionRepository,
    TransactionRepository,
)
from app.services.chain_client.types import RemoteBlock, RemoteTransaction
from app.utils.exceptions import StoreError


@dataclass
class _Repositories:
    """Repositories bound to one session."""

    blocks: BlockRepository
    transactions: TransactionRepository
    pending: PendingTransactionRepository
    accounts: AccountRepository


def _block_row(block: RemoteBlock) -> dict[str, Any]:
    """Map node block to block columns."""
    return {
        "shard_number": block.shard_number,
        "height": block.height,
        "head_hash": block.hash,
        "prev_hash": block.prev_hash,
        "timestamp": block.timestamp,
        "creator": block.creator,
        "difficulty": block.difficulty,
        "nonce": block.nonce,
        "tx_count": len(block.transactions),
    }


def _transaction_row(tx: RemoteTransaction) -> dict[str, Any]:
    """Map node transaction to transaction columns."""
    return {
        "hash": tx.hash,
        "shard_number": tx.shard_number,
        "tx_type": int(tx.tx_type),
        "block_height": tx.block_height,
        "block_hash": tx.block_hash,
        "from_address": tx.from_address,
        "to_address": tx.to_address,
        "contract_address": tx.contract_address,
        "amount": tx.amount,
        "fee": tx.fee,
        "timestamp": tx.timestamp,
        "pending": tx.pending,
        "account_nonce": tx.account_nonce,
        "payload": tx.payload,
    }


class ChainStore:
    """
    Persistence of blocks, transactions, pending transactions and accounts.

    Not-found is a normal result (None / empty list). Database failures
    are raised as StoreError.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize store.

        Args:
            session_factory: Factory producing one session per operation
        """
        self.session_factory = session_factory

    @asynccontextmanager
    async def _unit_of_work(self, operation: str) -> AsyncIterator[_Repositories]:
        """
        Open a session, yield repositories and commit on success.

        Args:
            operation: Operation name for error messages

        Raises:
            StoreError: If any database call fails
        """
        try:
            async with self.session_factory() as session:
                try:
                    yield _Repositories(
                        blocks=BlockRepository(session),
                        transactions=TransactionRepository(session),
                        pending=PendingTransactionRepository(session),
                        accounts=AccountRepository(session),
                    )
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        except SQLAlchemyError as e:
            logger.error(f"[Store] {operation} failed: {e}")
            raise StoreError(f"{operation}: {e}") from e

    # ------------------------------------------------------------------ blocks

    async def add_block(self, block: RemoteBlock) -> None:
        """
        Persist a block together with its transactions.

        Both are written in one unit of work: a block is never stored
        without its transactions.
        """
        async with self._unit_of_work(f"add block {block.height}") as repos:
            await repos.blocks.create(**_block_row(block))
            await repos.transactions.bulk_create(
                [_transaction_row(tx) for tx in block.transactions]
            )

    async def remove_block(self, shard_number: int, height: int) -> list[Transaction]:
        """
        Delete a block and its transactions.

        Args:
            shard_number: Shard number
            height: Block height

        Returns:
            The deleted transactions
        """
        async with self._unit_of_work(f"remove block {height}") as repos:
            txs = await repos.transactions.get_by_block(shard_number, height)
            await repos.transactions.delete_by_block(shard_number, height)
            await repos.blocks.delete_by_height(shard_number, height)
        return txs

    async def get_block_by_height(self, shard_number: int, height: int) -> Block | None:
        """Get stored block at height."""
        async with self._unit_of_work("get block by height") as repos:
            return await repos.blocks.get_by_height(shard_number, height)

    async def get_block_by_hash(self, head_hash: str) -> Block | None:
        """Get stored block by hash."""
        async with self._unit_of_work("get block by hash") as repos:
            return await repos.blocks.get_by_hash(head_hash)

    async def get_blocks_by_height_range(
        self, shard_number: int, begin: int, end: int
    ) -> list[Block]:
        """Get stored blocks with begin <= height < end, newest first."""
        async with self._unit_of_work("get blocks by range") as repos:
            return await repos.blocks.get_range(shard_number, begin, end)

    async def get_block_count(self, shard_number: int) -> int:
        """Get number of stored blocks, i.e. the next height to apply."""
        async with self._unit_of_work("count blocks") as repos:
            return await repos.blocks.count_by_shard(shard_number)

    async def count_mined_blocks(self, shard_number: int, creator: str) -> int:
        """Count stored blocks created by address."""
        async with self._unit_of_work("count mined blocks") as repos:
            return await repos.blocks.count_mined(shard_number, creator)

    # ------------------------------------------------------------ transactions

    async def add_transactions(self, transactions: Iterable[RemoteTransaction]) -> int:
        """Persist confirmed transactions; returns the number written."""
        rows = [_transaction_row(tx) for tx in transactions]
        async with self._unit_of_work("add transactions") as repos:
            await repos.transactions.bulk_create(rows)
        return len(rows)

    async def remove_transactions(self, shard_number: int, height: int) -> int:
        """Delete the transactions of a block height."""
        async with self._unit_of_work(f"remove transactions {height}") as repos:
            return await repos.transactions.delete_by_block(shard_number, height)

    async def get_transactions_by_block(
        self, shard_number: int, height: int
    ) -> list[Transaction]:
        """Get transactions of a stored block."""
        async with self._unit_of_work("get block transactions") as repos:
            return await repos.transactions.get_by_block(shard_number, height)

    async def get_transaction_by_hash(self, tx_hash: str) -> Transaction | None:
        """Get confirmed transaction by hash."""
        async with self._unit_of_work("get transaction") as repos:
            return await repos.transactions.get_by_hash(tx_hash)

    async def get_transactions_by_address(
        self, address: str, limit: int, shard_number: int | None = None
    ) -> list[Transaction]:
        """Get newest confirmed transactions of an address, optionally in one shard."""
        async with self._unit_of_work("get address transactions") as repos:
            return await repos.transactions.get_by_address(address, limit, shard_number)

    async def count_transactions(self, shard_number: int, address: str) -> int:
        """Count confirmed transactions of an address in a shard."""
        async with self._unit_of_work("count transactions") as repos:
            return await repos.transactions.count_by_address(shard_number, address)

    # ------------------------------------------------------------------ pending

    async def replace_pending_transactions(
        self, shard_number: int, transactions: Iterable[RemoteTransaction]
    ) -> int:
        """
        Replace the pending set of a shard.

        Args:
            shard_number: Shard number
            transactions: Current mempool content

        Returns:
            Number of stored pending transactions
        """
        rows = []
        for tx in transactions:
            row = _transaction_row(tx)
            row.update(pending=True, block_height=0, block_hash="")
            rows.append(row)

        async with self._unit_of_work("replace pending transactions") as repos:
            await repos.pending.clear_shard(shard_number)
            await repos.pending.bulk_create(rows)
        return len(rows)

    async def clear_pending_transactions(self, shard_number: int) -> int:
        """Delete the pending set of a shard."""
        async with self._unit_of_work("clear pending transactions") as repos:
            return await repos.pending.clear_shard(shard_number)

    async def get_pending_transactions(self, shard_number: int) -> list[PendingTransaction]:
        """Get the pending set of a shard."""
        async with self._unit_of_work("get pending transactions") as repos:
            return await repos.pending.find_all(shard_number=shard_number)

    async def get_pending_transactions_by_address(
        self, address: str, shard_number: int | None = None
    ) -> list[PendingTransaction]:
        """Get pending transactions of an address, newest first."""
        async with self._unit_of_work("get address pending transactions") as repos:
            return await repos.pending.get_by_address(address, shard_number)

    # ----------------------------------------------------------------- accounts

    async def get_account(
        self, address: str, shard_number: int | None = None
    ) -> Account | None:
        """
        Get account by address.

        Accounts are per shard; without a shard number the account of
        the lowest shard holding the address is returned.
        """
        async with self._unit_of_work("get account") as repos:
            return await repos.accounts.get_by_address(address, shard_number)

    async def add_account(
        self,
        address: str,
        shard_number: int,
        account_type: AccountType = AccountType.EXTERNAL,
    ) -> Account:
        """Create an empty account."""
        async with self._unit_of_work("add account") as repos:
            return await repos.accounts.create(
                address=address,
                shard_number=shard_number,
                account_type=account_type,
                balance=0,
                tx_count=0,
                mined_block_count=0,
            )

    async def upsert_account(
        self,
        address: str,
        shard_number: int,
        balance: int,
        tx_count: int,
        account_type: AccountType | None = None,
    ) -> Account:
        """Insert or update balance and transaction count of an account."""
        async with self._unit_of_work("upsert account") as repos:
            return await repos.accounts.upsert(
                address, shard_number, balance, tx_count, account_type
            )

    async def update_mined_block_count(
        self, address: str, shard_number: int, mined: int
    ) -> bool:
        """Set mined block count of an existing account."""
        async with self._unit_of_work("update mined block count") as repos:
            return await repos.accounts.update_mined_block_count(
                address, shard_number, mined
            )

    async def get_ranked_accounts(self, shard_number: int, limit: int) -> list[Account]:
        """Get external accounts of a shard, richest first."""
        async with self._unit_of_work("get ranked accounts") as repos:
            return await repos.accounts.get_ranked(shard_number, limit)

    async def get_total_balances(self) -> dict[int, int]:
        """Sum balances per shard; shards without accounts are absent."""
        async with self._unit_of_work("get total balances") as repos:
            return await repos.accounts.get_total_balances()
