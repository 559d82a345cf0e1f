"""
Account ranking read models.

Immutable rows held by ranked snapshots and the DTOs handed to the
serving layer.
"""

from dataclasses import dataclass, field
from typing import Any

from app.models.account import Account
from app.models.enums import TransactionType
from app.models.transaction import TransactionColumnsMixin


@dataclass(frozen=True)
class AccountRow:
    """Point-in-time copy of an account row."""

    address: str
    shard_number: int
    account_type: int
    balance: int
    tx_count: int

    @classmethod
    def from_model(cls, account: Account) -> "AccountRow":
        return cls(
            address=account.address,
            shard_number=account.shard_number,
            account_type=int(account.account_type),
            balance=account.balance,
            tx_count=account.tx_count,
        )


@dataclass(frozen=True)
class RankedAccount:
    """Account entry of a ranked page."""

    rank: int
    address: str
    shard_number: int
    account_type: int
    balance: int
    percentage: float
    tx_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "accType": self.account_type,
            "shardnumber": self.shard_number,
            "rank": self.rank,
            "address": self.address,
            "balance": self.balance,
            "percentage": self.percentage,
            "txcount": self.tx_count,
        }


@dataclass(frozen=True)
class AccountsPage:
    """One page of a shard's ranked accounts."""

    shard_number: int
    total_count: int
    begin: int
    end: int
    page_index: int
    total_balance: int
    accounts: tuple[RankedAccount, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "pageInfo": {
                "totalCount": self.total_count,
                "begin": self.begin,
                "end": self.end,
                "curPage": self.page_index + 1,
                "totalBalance": self.total_balance,
            },
            "list": [account.to_dict() for account in self.accounts],
        }


@dataclass(frozen=True)
class AccountTransaction:
    """Transaction as listed in an account detail."""

    hash: str
    shard_number: int
    tx_type: int
    block_height: int
    from_address: str
    to_address: str
    amount: int
    fee: int
    timestamp: int
    pending: bool
    incoming: bool

    @classmethod
    def from_model(
        cls, tx: TransactionColumnsMixin, address: str
    ) -> "AccountTransaction":
        return cls(
            hash=tx.hash,
            shard_number=tx.shard_number,
            tx_type=int(tx.tx_type),
            block_height=tx.block_height,
            from_address=tx.from_address,
            to_address=tx.to_address,
            amount=tx.amount,
            fee=tx.fee,
            timestamp=tx.timestamp,
            pending=tx.pending,
            # Outgoing only when the account is the sender
            incoming=tx.from_address != address,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "shardnumber": self.shard_number,
            "txtype": self.tx_type,
            "hash": self.hash,
            "block": self.block_height,
            "from": self.from_address,
            "to": self.to_address,
            "value": self.amount,
            "timestamp": self.timestamp,
            "fee": self.fee,
            "inorout": self.incoming,
            "pending": self.pending,
        }


@dataclass(frozen=True)
class AccountDetail:
    """Account with its most recent transactions."""

    address: str
    shard_number: int
    account_type: int
    balance: int
    percentage: float
    tx_count: int
    mined_block_count: int
    contract_creation_code: str = ""
    transactions: tuple[AccountTransaction, ...] = field(default_factory=tuple)

    @classmethod
    def build(
        cls,
        account: Account,
        transactions: list[TransactionColumnsMixin],
        total_balance: int,
    ) -> "AccountDetail":
        """
        Assemble detail from an account and its transactions.

        Args:
            account: Account row
            transactions: Pending first, then persisted, newest first
            total_balance: Shard total balance used for the percentage
        """
        creation_code = ""
        for tx in transactions:
            if tx.tx_type == TransactionType.CONTRACT_CREATION:
                creation_code = tx.payload

        return cls(
            address=account.address,
            shard_number=account.shard_number,
            account_type=int(account.account_type),
            balance=account.balance,
            percentage=percentage_of(account.balance, total_balance),
            tx_count=account.tx_count,
            mined_block_count=account.mined_block_count,
            contract_creation_code=creation_code,
            transactions=tuple(
                AccountTransaction.from_model(tx, account.address)
                for tx in transactions
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "accType": self.account_type,
            "shardnumber": self.shard_number,
            "address": self.address,
            "balance": self.balance,
            "percentage": self.percentage,
            "txcount": self.tx_count,
            "minedBlockCount": self.mined_block_count,
            "contractCreationCode": self.contract_creation_code,
            "txs": [tx.to_dict() for tx in self.transactions],
        }


def percentage_of(balance: int, total_balance: int) -> float:
    """Share of the shard total; a non-positive total yields 0."""
    if total_balance <= 0:
        return 0.0
    return balance / total_balance
