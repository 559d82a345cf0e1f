"""
Transaction models.

Confirmed transactions live in `transactions`; transactions seen only in
the node mempool live in `pending_transactions`, which is wholly replaced
on every refresh.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import TransactionType


class TransactionColumnsMixin:
    """Columns shared by confirmed and pending transactions."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    hash: Mapped[str] = mapped_column(String(66), nullable=False, index=True)
    shard_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    tx_type: Mapped[int] = mapped_column(
        Integer, nullable=False, default=TransactionType.TRANSFER
    )

    # Inclusion (0 / "" while pending)
    block_height: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    block_hash: Mapped[str] = mapped_column(String(66), nullable=False, default="")

    # Participants
    from_address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    to_address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    contract_address: Mapped[str | None] = mapped_column(
        String(42), nullable=True, index=True
    )

    # Value
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    pending: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    account_nonce: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="")


class Transaction(TransactionColumnsMixin, Base):
    """Transaction included in a replicated block."""

    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint("hash", name="uq_transactions_hash"),
        Index("ix_transactions_shard_block_height", "shard_number", "block_height"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(hash={self.hash[:16]}..., "
            f"height={self.block_height}, amount={self.amount})>"
        )


class PendingTransaction(TransactionColumnsMixin, Base):
    """Transaction observed in the node mempool."""

    __tablename__ = "pending_transactions"

    def __repr__(self) -> str:
        """String representation."""
        return f"<PendingTransaction(hash={self.hash[:16]}..., amount={self.amount})>"
