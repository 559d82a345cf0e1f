"""
Account model.

Derived account state. Balance and counters are never the source of
truth: they are recomputed from the node and the replica after every
block that touches the address.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import AccountType


class Account(Base):
    """
    Chain account, created lazily.

    An account row appears the first time its address is seen as a
    transaction participant or block creator.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        # The same address is a separate account in every shard
        UniqueConstraint("shard_number", "address", name="uq_accounts_shard_address"),
        Index("ix_accounts_shard_balance", "shard_number", "balance"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Identification
    address: Mapped[str] = mapped_column(
        String(42), nullable=False, index=True
    )
    shard_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    account_type: Mapped[int] = mapped_column(
        Integer, nullable=False, default=AccountType.EXTERNAL
    )

    # Derived state
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    tx_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    mined_block_count: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Account(address={self.address}, shard={self.shard_number}, "
            f"balance={self.balance})>"
        )
