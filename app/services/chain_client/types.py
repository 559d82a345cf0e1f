"""
Typed records returned by the chain node.
"""

from dataclasses import dataclass, field
from typing import Any

from app.config.constants import NULL_ADDRESS
from app.models.enums import TransactionType


def _to_int(value: Any, default: int = 0) -> int:
    """Convert node numeric (int, decimal or hex string) to int."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def classify_transaction(from_address: str, to_address: str) -> TransactionType:
    """
    Derive transaction type from its endpoints.

    Args:
        from_address: Sender address
        to_address: Recipient address

    Returns:
        OTHER for reward credits, CONTRACT_CREATION when there is no
        recipient, TRANSFER otherwise
    """
    if from_address == NULL_ADDRESS:
        return TransactionType.OTHER
    if not to_address or to_address == NULL_ADDRESS:
        return TransactionType.CONTRACT_CREATION
    return TransactionType.TRANSFER


@dataclass(frozen=True)
class ChainTip:
    """Current head of a shard chain."""

    height: int
    hash: str


@dataclass(frozen=True)
class RemoteTransaction:
    """Transaction as reported by the node."""

    hash: str
    shard_number: int
    from_address: str
    to_address: str
    amount: int
    fee: int = 0
    account_nonce: int = 0
    payload: str = ""
    timestamp: int = 0
    block_height: int = 0
    block_hash: str = ""
    contract_address: str | None = None
    pending: bool = False

    @property
    def tx_type(self) -> TransactionType:
        """Transaction type derived from endpoints."""
        return classify_transaction(self.from_address, self.to_address)

    @classmethod
    def from_rpc(
        cls,
        data: dict[str, Any],
        shard_number: int,
        block_height: int = 0,
        block_hash: str = "",
        timestamp: int = 0,
        pending: bool = False,
    ) -> "RemoteTransaction":
        """
        Build transaction from node JSON.

        Args:
            data: Transaction object from the node
            shard_number: Shard the node serves
            block_height: Height of the including block (0 if pending)
            block_hash: Hash of the including block ("" if pending)
            timestamp: Block timestamp, used when the tx carries none
            pending: Whether the tx comes from the mempool

        Returns:
            RemoteTransaction

        Raises:
            ValueError: If the hash is missing or a number is malformed
        """
        tx_hash = data.get("hash") or data.get("Hash")
        if not tx_hash:
            raise ValueError("Transaction without hash")

        from_address = data.get("from") or NULL_ADDRESS
        to_address = data.get("to") or NULL_ADDRESS
        return cls(
            hash=tx_hash,
            shard_number=shard_number,
            from_address=from_address,
            to_address=to_address,
            amount=_to_int(data.get("amount")),
            fee=_to_int(data.get("fee")),
            account_nonce=_to_int(data.get("accountNonce")),
            payload=data.get("payload") or "",
            timestamp=_to_int(data.get("timestamp"), default=timestamp),
            block_height=block_height,
            block_hash=block_hash,
            contract_address=data.get("contractAddress") or None,
            pending=pending,
        )


@dataclass(frozen=True)
class RemoteBlock:
    """Block as reported by the node."""

    shard_number: int
    height: int
    hash: str
    prev_hash: str
    creator: str
    timestamp: int = 0
    difficulty: int = 0
    nonce: str = ""
    transactions: tuple[RemoteTransaction, ...] = field(default_factory=tuple)

    @classmethod
    def from_rpc(cls, data: dict[str, Any], shard_number: int) -> "RemoteBlock":
        """
        Build block from node JSON.

        Args:
            data: Result of seele_getBlockByHeight
            shard_number: Shard the node serves

        Returns:
            RemoteBlock

        Raises:
            ValueError: If the block has no hash or height
        """
        header = data.get("header") or {}
        block_hash = data.get("hash")
        if not block_hash:
            raise ValueError("Block without hash")
        if "Height" not in header:
            raise ValueError(f"Block {block_hash} without height")

        height = _to_int(header.get("Height"))
        timestamp = _to_int(header.get("CreateTimestamp"))
        transactions = tuple(
            RemoteTransaction.from_rpc(
                tx,
                shard_number,
                block_height=height,
                block_hash=block_hash,
                timestamp=timestamp,
            )
            for tx in data.get("transactions") or []
            if isinstance(tx, dict)
        )
        return cls(
            shard_number=shard_number,
            height=height,
            hash=block_hash,
            prev_hash=header.get("PreviousBlockHash") or "",
            creator=header.get("Creator") or NULL_ADDRESS,
            timestamp=timestamp,
            difficulty=_to_int(header.get("Difficulty")),
            nonce=str(header.get("Nonce") or ""),
            transactions=transactions,
        )

    @property
    def has_creator(self) -> bool:
        """Check if block has a real creator."""
        return bool(self.creator) and self.creator != NULL_ADDRESS
