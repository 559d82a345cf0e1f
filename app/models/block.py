"""
Block model.

Local replica of a chain block, one row per (shard, height).
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class Block(Base):
    """
    Replicated chain block.

    Within a shard there is exactly one stored block per height.
    `prev_hash` equals the `head_hash` of the block at height - 1
    once the replica has converged.
    """

    __tablename__ = "blocks"
    __table_args__ = (
        UniqueConstraint("shard_number", "height", name="uq_blocks_shard_height"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Position in chain
    shard_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    height: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    # Hashes
    head_hash: Mapped[str] = mapped_column(
        String(66), nullable=False, unique=True, index=True
    )
    prev_hash: Mapped[str] = mapped_column(String(66), nullable=False)

    # Header
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    creator: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    difficulty: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    nonce: Mapped[str] = mapped_column(String(66), nullable=False, default="")
    tx_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Block(shard={self.shard_number}, height={self.height}, "
            f"hash={self.head_hash[:16]}...)>"
        )
