"""
Chain Walker Reconcile Mixin.

Recomputes derived account state after a ledger mutation.
"""

from loguru import logger

from app.config.constants import NULL_ADDRESS
from app.models.enums import AccountType, TransactionType
from app.utils.exceptions import ChainClientError, ReconcileError, StoreError
from app.utils.security import mask_address


class ReconcileMixin:
    """Mixin providing account reconciliation."""

    @staticmethod
    def _affected_accounts(transactions) -> dict[str, AccountType | None]:
        """
        Collect addresses touched by transactions, in first-seen order.

        Works for node records and stored rows alike. The contract
        address of a contract creation is typed CONTRACT; other
        addresses keep their stored type (None).

        Args:
            transactions: Iterable of transactions

        Returns:
            Mapping of address to account type override
        """
        affected: dict[str, AccountType | None] = {}
        for tx in transactions:
            for address in (tx.from_address, tx.to_address):
                if address and address != NULL_ADDRESS:
                    affected.setdefault(address, None)
            contract = getattr(tx, "contract_address", None)
            if (
                contract
                and contract != NULL_ADDRESS
                and tx.tx_type == TransactionType.CONTRACT_CREATION
            ):
                affected[contract] = AccountType.CONTRACT
        return affected

    async def reconcile_account(
        self,
        address: str,
        account_type: AccountType | None = None,
    ) -> None:
        """
        Refresh balance and transaction count of one address.

        The balance comes from the node, the count from the replica;
        each address gets its own values.

        Args:
            address: Account address
            account_type: Type to set (keep stored type when None)

        Raises:
            ReconcileError: If the node or the store fails
        """
        try:
            balance = await self.client.balance_of(address)
            tx_count = await self.store.count_transactions(self.shard_number, address)
            await self.store.upsert_account(
                address,
                self.shard_number,
                balance=balance,
                tx_count=tx_count,
                account_type=account_type,
            )
        except (ChainClientError, StoreError) as e:
            raise ReconcileError(address, str(e)) from e

        logger.debug(
            f"[Walker shard={self.shard_number}] Account {mask_address(address)}: "
            f"balance={balance}, txs={tx_count}"
        )

    async def reconcile_transactions(self, transactions) -> int:
        """
        Refresh every account touched by transactions.

        Args:
            transactions: Node records or stored rows

        Returns:
            Number of reconciled accounts

        Raises:
            ReconcileError: On the first failing account
        """
        affected = self._affected_accounts(transactions)
        for address, account_type in affected.items():
            await self.reconcile_account(address, account_type)
        return len(affected)

    async def reconcile_creator(self, creator: str) -> None:
        """
        Refresh mined block count of a block creator.

        The account is created empty when it does not exist yet.

        Args:
            creator: Block creator address

        Raises:
            ReconcileError: If the store fails
        """
        if not creator or creator == NULL_ADDRESS:
            return

        try:
            account = await self.store.get_account(creator, self.shard_number)
            if account is None:
                await self.store.add_account(creator, self.shard_number)
                logger.debug(
                    f"[Walker shard={self.shard_number}] Created account for "
                    f"miner {mask_address(creator)}"
                )
            mined = await self.store.count_mined_blocks(self.shard_number, creator)
            await self.store.update_mined_block_count(
                creator, self.shard_number, mined
            )
        except StoreError as e:
            raise ReconcileError(creator, str(e)) from e
