"""Create chain replica tables.

Revision ID: 20261017_000001
Revises:
Create Date: 2026-10-17

This migration creates the block, transaction, pending transaction and
account tables of the shard replica.
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261017_000001"
down_revision = None
branch_labels = None
depends_on = None


def _transaction_columns() -> list[sa.Column]:
    """Columns shared by confirmed and pending transactions."""
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("hash", sa.String(length=66), nullable=False),
        sa.Column("shard_number", sa.Integer(), nullable=False),
        sa.Column("tx_type", sa.Integer(), nullable=False),  # transfer, creation, other
        # Inclusion, 0 and "" while pending
        sa.Column("block_height", sa.BigInteger(), nullable=False),
        sa.Column("block_hash", sa.String(length=66), nullable=False),
        # Participants
        sa.Column("from_address", sa.String(length=42), nullable=False),
        sa.Column("to_address", sa.String(length=42), nullable=False),
        sa.Column("contract_address", sa.String(length=42), nullable=True),
        # Value
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("fee", sa.BigInteger(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("pending", sa.Boolean(), nullable=False),
        sa.Column("account_nonce", sa.BigInteger(), nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    ]


def _index_transaction_columns(table: str) -> None:
    for column in (
        "hash",
        "shard_number",
        "from_address",
        "to_address",
        "contract_address",
    ):
        op.create_index(f"ix_{table}_{column}", table, [column])


def upgrade() -> None:
    """Create replica tables."""
    op.create_table(
        "blocks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        # Position in chain
        sa.Column("shard_number", sa.Integer(), nullable=False),
        sa.Column("height", sa.BigInteger(), nullable=False),
        # Hashes
        sa.Column("head_hash", sa.String(length=66), nullable=False),
        sa.Column("prev_hash", sa.String(length=66), nullable=False),
        # Header
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("creator", sa.String(length=42), nullable=False),
        sa.Column("difficulty", sa.BigInteger(), nullable=False),
        sa.Column("nonce", sa.String(length=66), nullable=False),
        sa.Column("tx_count", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        # One block per height within a shard
        sa.UniqueConstraint("shard_number", "height", name="uq_blocks_shard_height"),
    )
    op.create_index("ix_blocks_shard_number", "blocks", ["shard_number"])
    op.create_index("ix_blocks_height", "blocks", ["height"])
    op.create_index("ix_blocks_head_hash", "blocks", ["head_hash"], unique=True)
    op.create_index("ix_blocks_creator", "blocks", ["creator"])

    op.create_table(
        "transactions",
        *_transaction_columns(),
        sa.UniqueConstraint("hash", name="uq_transactions_hash"),
    )
    _index_transaction_columns("transactions")
    op.create_index(
        "ix_transactions_shard_block_height",
        "transactions",
        ["shard_number", "block_height"],
    )

    # Wholly replaced on every mempool refresh
    op.create_table("pending_transactions", *_transaction_columns())
    _index_transaction_columns("pending_transactions")

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("address", sa.String(length=42), nullable=False),
        sa.Column("shard_number", sa.Integer(), nullable=False),
        sa.Column("account_type", sa.Integer(), nullable=False),  # external, contract
        # Derived state
        sa.Column("balance", sa.BigInteger(), nullable=False),
        sa.Column("tx_count", sa.BigInteger(), nullable=False),
        sa.Column("mined_block_count", sa.BigInteger(), nullable=False),
        # Timestamps
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        # The same address is a separate account in every shard
        sa.UniqueConstraint("shard_number", "address", name="uq_accounts_shard_address"),
    )
    op.create_index("ix_accounts_address", "accounts", ["address"])
    op.create_index("ix_accounts_shard_number", "accounts", ["shard_number"])
    # Ranking reads accounts of a shard by descending balance
    op.create_index("ix_accounts_shard_balance", "accounts", ["shard_number", "balance"])


def downgrade() -> None:
    """Drop replica tables."""
    op.drop_table("accounts")
    op.drop_table("pending_transactions")
    op.drop_table("transactions")
    op.drop_table("blocks")
