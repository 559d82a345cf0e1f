"""
Chain Walker Rollback Mixin.

Detects divergence between the replica and the node and removes
stale blocks from the top of the replica.
"""

from loguru import logger

from app.models.block import Block
from app.models.transaction import Transaction
from app.utils.exceptions import TRANSIENT_ERRORS


class RollbackMixin:
    """Mixin providing reorg detection and rollback."""

    async def rollback_diverged_blocks(self) -> list[int]:
        """
        Remove stored blocks that no longer match the node.

        Walks down from the highest stored height and stops at the first
        height whose stored hash equals the node's. Every stale block
        above height 0 is deleted with its transactions and the touched
        accounts are reconciled. Height 0 is compared but never deleted.

        An empty replica is assumed convergent. Any failure aborts the
        scan, leaving the replica partially rolled back for the next cycle.

        Returns:
            Heights that were rolled back, highest first
        """
        rolled_back: list[int] = []

        try:
            local_height = await self.store.get_block_count(self.shard_number)
        except TRANSIENT_ERRORS as e:
            self._phase_failed("rollback", e)
            return rolled_back

        if local_height == 0:
            return rolled_back

        for height in range(local_height - 1, -1, -1):
            try:
                remote = await self.client.block_at_height(height, include_txs=False)
                local = await self.store.get_block_by_height(self.shard_number, height)
            except TRANSIENT_ERRORS as e:
                self._phase_failed("rollback", e)
                return rolled_back

            if local is None:
                logger.warning(
                    f"[Walker shard={self.shard_number}] No stored block at "
                    f"height {height} below a stored tip, stopping rollback"
                )
                return rolled_back

            if local.head_hash == remote.hash:
                return rolled_back

            if height == 0:
                logger.warning(
                    f"[Walker shard={self.shard_number}] Genesis block differs "
                    f"from node ({local.head_hash} != {remote.hash}), "
                    f"replica is suspect"
                )
                return rolled_back

            try:
                logger.info(
                    f"[Walker shard={self.shard_number}] Rolling back block "
                    f"{height} ({local.head_hash})"
                )
                transactions = await self.store.remove_block(self.shard_number, height)
                rolled_back.append(height)
                await self._reconcile_removed_block(local, transactions)
            except TRANSIENT_ERRORS as e:
                self._phase_failed("rollback", e)
                return rolled_back

        return rolled_back

    async def _reconcile_removed_block(
        self, block: Block, transactions: list[Transaction]
    ) -> None:
        """
        Reconcile accounts touched by a removed block.

        Args:
            block: Removed block
            transactions: Its removed transactions
        """
        await self.reconcile_transactions(transactions)
        await self.reconcile_creator(block.creator)
