"""
Account repository.

Data access layer for derived account state.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.models.enums import AccountType
from app.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Repository for accounts."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Account, session)

    async def get_by_address(
        self, address: str, shard_number: int | None = None
    ) -> Account | None:
        """
        Get account by address.

        Args:
            address: Account address
            shard_number: Shard to look in, lowest shard first when None

        Returns:
            Account or None
        """
        if shard_number is not None:
            return await self.get_by(shard_number=shard_number, address=address)

        query = (
            select(Account)
            .where(Account.address == address)
            .order_by(Account.shard_number.asc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalars().first()

    async def upsert(
        self,
        address: str,
        shard_number: int,
        balance: int,
        tx_count: int,
        account_type: AccountType | None = None,
    ) -> Account:
        """
        Insert or update balance and transaction count of an account.

        Args:
            address: Account address
            shard_number: Shard number
            balance: Authoritative balance
            tx_count: Transaction count in the replica
            account_type: New account type (kept when None)

        Returns:
            Stored account
        """
        account = await self.get_by_address(address, shard_number)
        if account is None:
            return await self.create(
                address=address,
                shard_number=shard_number,
                account_type=account_type or AccountType.EXTERNAL,
                balance=balance,
                tx_count=tx_count,
                mined_block_count=0,
            )

        account.balance = balance
        account.tx_count = tx_count
        if account_type is not None:
            account.account_type = account_type
        await self.session.flush()
        return account

    async def update_mined_block_count(
        self, address: str, shard_number: int, mined: int
    ) -> bool:
        """
        Set mined block count of an existing account.

        Args:
            address: Account address
            shard_number: Shard number
            mined: Number of blocks created by the account

        Returns:
            True if the account exists
        """
        account = await self.get_by_address(address, shard_number)
        if account is None:
            return False
        account.mined_block_count = mined
        await self.session.flush()
        return True

    async def get_ranked(self, shard_number: int, limit: int) -> list[Account]:
        """
        Get external accounts of a shard ordered by balance.

        Args:
            shard_number: Shard number
            limit: Max results

        Returns:
            Accounts, richest first
        """
        query = (
            select(Account)
            .where(
                Account.shard_number == shard_number,
                Account.account_type == AccountType.EXTERNAL,
            )
            .order_by(Account.balance.desc(), Account.id.asc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_total_balances(self) -> dict[int, int]:
        """
        Sum balances per shard.

        Shards without accounts are absent from the result.

        Returns:
            Mapping of shard number to total balance
        """
        query = select(
            Account.shard_number, func.sum(Account.balance)
        ).group_by(Account.shard_number)
        result = await self.session.execute(query)
        return {
            int(shard_number): int(total or 0)
            for shard_number, total in result.all()
        }
