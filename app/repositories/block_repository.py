"""
Block repository.

Data access layer for replicated blocks.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.block import Block
from app.repositories.base import BaseRepository


class BlockRepository(BaseRepository[Block]):
    """Repository for replicated blocks."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Block, session)

    async def get_by_height(self, shard_number: int, height: int) -> Block | None:
        """
        Get block at height.

        Args:
            shard_number: Shard number
            height: Block height

        Returns:
            Block or None
        """
        return await self.get_by(shard_number=shard_number, height=height)

    async def get_by_hash(self, head_hash: str) -> Block | None:
        """Get block by header hash."""
        return await self.get_by(head_hash=head_hash)

    async def get_range(
        self, shard_number: int, begin: int, end: int
    ) -> list[Block]:
        """
        Get blocks with begin <= height < end, newest first.

        Args:
            shard_number: Shard number
            begin: First height (inclusive)
            end: Last height (exclusive)

        Returns:
            List of blocks
        """
        query = (
            select(Block)
            .where(
                Block.shard_number == shard_number,
                Block.height >= begin,
                Block.height < end,
            )
            .order_by(Block.height.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_shard(self, shard_number: int) -> int:
        """
        Count stored blocks of a shard.

        Blocks form a contiguous prefix, so this is also the next
        height to apply.
        """
        return await self.count(shard_number=shard_number)

    async def count_mined(self, shard_number: int, creator: str) -> int:
        """Count blocks created by address in a shard."""
        return await self.count(shard_number=shard_number, creator=creator)

    async def delete_by_height(self, shard_number: int, height: int) -> int:
        """Delete block at height."""
        return await self.delete_by(shard_number=shard_number, height=height)
