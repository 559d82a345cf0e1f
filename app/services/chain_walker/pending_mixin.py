"""
Chain Walker Pending Mixin.

Mirrors the node mempool into the pending transaction table.
"""

from loguru import logger

from app.utils.exceptions import TRANSIENT_ERRORS


class PendingMixin:
    """Mixin providing pending transaction refresh."""

    async def refresh_pending(self) -> int:
        """
        Replace the shard's pending set with the node mempool.

        The previous set never survives a refresh: when the mempool
        cannot be fetched the set is cleared, otherwise it is replaced
        in one unit of work.

        Returns:
            Number of stored pending transactions
        """
        try:
            transactions = await self.client.pending_transactions()
        except TRANSIENT_ERRORS as e:
            self._phase_failed("pending", e)
            try:
                await self.store.clear_pending_transactions(self.shard_number)
            except TRANSIENT_ERRORS as clear_error:
                self._phase_failed("pending", clear_error)
            return 0

        try:
            stored = await self.store.replace_pending_transactions(
                self.shard_number, transactions
            )
        except TRANSIENT_ERRORS as e:
            self._phase_failed("pending", e)
            return 0

        logger.debug(
            f"[Walker shard={self.shard_number}] Pending transactions: {stored}"
        )
        return stored
