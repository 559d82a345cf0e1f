"""
Chain Walker Replay Mixin.

Appends node blocks to the replica in increasing height order.
"""

from loguru import logger

from app.services.chain_client.types import RemoteBlock
from app.utils.exceptions import TRANSIENT_ERRORS, ChainClientError, ChainDivergedError


class ReplayMixin:
    """Mixin providing forward replay."""

    async def replay_forward(self) -> list[int]:
        """
        Apply node blocks from the local height through the node tip.

        For each height: fetch the block, check that it extends the
        stored parent, persist it with its transactions, reconcile touched
        accounts and the creator's mined count. The first failure stops
        replay; heights already applied stay committed and the next cycle
        resumes after them. A block linking to a different parent means
        the rollback phase left stale blocks below; replay stops and the
        next rollback removes them.

        Returns:
            Applied heights in increasing order
        """
        applied: list[int] = []

        try:
            local_height = await self.store.get_block_count(self.shard_number)
            parent_hash = await self._stored_head_hash(local_height - 1)
            tip = await self.client.current_tip()
        except TRANSIENT_ERRORS as e:
            self._phase_failed("replay", e)
            return applied

        if local_height > tip.height:
            logger.debug(
                f"[Walker shard={self.shard_number}] Replica height {local_height} "
                f"is ahead of node tip {tip.height}"
            )
            return applied

        for height in range(local_height, tip.height + 1):
            try:
                block = await self.client.block_at_height(height, include_txs=True)
                if block.height != height:
                    raise ChainClientError(
                        f"Asked for block {height}, node returned {block.height}"
                    )
                if height > 0 and block.prev_hash != parent_hash:
                    raise ChainDivergedError(height, parent_hash, block.prev_hash)
                await self._apply_block(block)
            except TRANSIENT_ERRORS as e:
                self._phase_failed("replay", e)
                break

            applied.append(height)
            parent_hash = block.hash

        if applied:
            logger.info(
                f"[Walker shard={self.shard_number}] Applied blocks "
                f"{applied[0]}..{applied[-1]} (tip {tip.height})"
            )
        return applied

    async def _stored_head_hash(self, height: int) -> str:
        """Get hash of the stored block at height, "" below genesis."""
        if height < 0:
            return ""
        block = await self.store.get_block_by_height(self.shard_number, height)
        return block.head_hash if block is not None else ""

    async def _apply_block(self, block: RemoteBlock) -> None:
        """
        Persist one block and reconcile the accounts it touches.

        Args:
            block: Block fetched from the node
        """
        await self.store.add_block(block)
        reconciled = await self.reconcile_transactions(block.transactions)
        if block.has_creator:
            await self.reconcile_creator(block.creator)

        logger.debug(
            f"[Walker shard={self.shard_number}] Block {block.height}: "
            f"{len(block.transactions)} txs, {reconciled} accounts"
        )
