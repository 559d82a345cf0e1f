"""
Transaction repositories.

Data access layer for confirmed and pending transactions.
"""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.transaction import PendingTransaction, Transaction
from app.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for confirmed transactions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Transaction, session)

    async def get_by_hash(self, tx_hash: str) -> Transaction | None:
        """Get transaction by hash."""
        return await self.get_by(hash=tx_hash)

    async def get_by_block(
        self, shard_number: int, block_height: int
    ) -> list[Transaction]:
        """
        Get transactions of a block in inclusion order.

        Args:
            shard_number: Shard number
            block_height: Block height

        Returns:
            List of transactions
        """
        query = (
            select(Transaction)
            .where(
                Transaction.shard_number == shard_number,
                Transaction.block_height == block_height,
            )
            .order_by(Transaction.id.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_by_address(
        self, address: str, limit: int = 25, shard_number: int | None = None
    ) -> list[Transaction]:
        """
        Get newest transactions involving an address.

        Args:
            address: Account address
            limit: Max results
            shard_number: Restrict to one shard when given

        Returns:
            List of transactions, newest first
        """
        query = select(Transaction).where(
            or_(
                Transaction.from_address == address,
                Transaction.to_address == address,
                Transaction.contract_address == address,
            )
        )
        if shard_number is not None:
            query = query.where(Transaction.shard_number == shard_number)
        query = query.order_by(
            Transaction.timestamp.desc(), Transaction.block_height.desc()
        ).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_address(self, shard_number: int, address: str) -> int:
        """
        Count transactions involving an address in a shard.

        Matches the same participants as get_by_address, including the
        contract deployed by a contract creation.

        Args:
            shard_number: Shard number
            address: Account address

        Returns:
            Transaction count
        """
        query = select(func.count()).select_from(Transaction).where(
            Transaction.shard_number == shard_number,
            or_(
                Transaction.from_address == address,
                Transaction.to_address == address,
                Transaction.contract_address == address,
            ),
        )
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def delete_by_block(self, shard_number: int, block_height: int) -> int:
        """Delete all transactions of a block."""
        return await self.delete_by(
            shard_number=shard_number, block_height=block_height
        )


class PendingTransactionRepository(BaseRepository[PendingTransaction]):
    """Repository for mempool transactions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(PendingTransaction, session)

    async def clear_shard(self, shard_number: int) -> int:
        """Delete every pending transaction of a shard."""
        return await self.delete_by(shard_number=shard_number)

    async def get_by_address(
        self, address: str, shard_number: int | None = None
    ) -> list[PendingTransaction]:
        """
        Get pending transactions involving an address.

        Args:
            address: Account address
            shard_number: Restrict to one shard when given

        Returns:
            List of pending transactions, newest first
        """
        query = select(PendingTransaction).where(
            or_(
                PendingTransaction.from_address == address,
                PendingTransaction.to_address == address,
                PendingTransaction.contract_address == address,
            )
        )
        if shard_number is not None:
            query = query.where(PendingTransaction.shard_number == shard_number)
        query = query.order_by(PendingTransaction.timestamp.desc())
        result = await self.session.execute(query)
        return list(result.scalars().all())
