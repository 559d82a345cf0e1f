"""Test doubles and builders for chain data."""

from dataclasses import replace

from app.services.chain_client import ChainTip, RemoteBlock, RemoteTransaction
from app.utils.exceptions import ChainClientError

MINER = "0x00000000000000000000000000000000000000aa"
ALICE = "0x00000000000000000000000000000000000000a1"
BOB = "0x00000000000000000000000000000000000000b2"
CAROL = "0x00000000000000000000000000000000000000c3"


class FakeChainClient:
    """
    In-memory node of one shard.

    Tests mutate ``blocks``, ``balances`` and ``mempool`` to script the
    remote chain; names in ``failing`` make the matching call raise.
    ``fail_on_call`` maps a name to the 1-based index of the next call
    that raises once.
    """

    def __init__(self, shard_number: int = 1):
        self.shard_number = shard_number
        self.blocks: dict[int, RemoteBlock] = {}
        self.balances: dict[str, int] = {}
        self.mempool: list[RemoteTransaction] = []
        self.failing: set[str] = set()
        self.fail_on_call: dict[str, int] = {}
        self.closed = False

    def _check(self, method: str) -> None:
        if method in self.failing:
            raise ChainClientError(f"{method}: node unreachable")
        if method in self.fail_on_call:
            self.fail_on_call[method] -= 1
            if self.fail_on_call[method] == 0:
                del self.fail_on_call[method]
                raise ChainClientError(f"{method}: connection reset")

    def put(self, *blocks: RemoteBlock) -> None:
        for block in blocks:
            self.blocks[block.height] = block

    async def current_tip(self) -> ChainTip:
        self._check("current_tip")
        if not self.blocks:
            raise ChainClientError("seele_getInfo: empty chain")
        height = max(self.blocks)
        return ChainTip(height=height, hash=self.blocks[height].hash)

    async def block_at_height(self, height: int, include_txs: bool = True) -> RemoteBlock:
        self._check("block_at_height")
        block = self.blocks.get(height)
        if block is None:
            raise ChainClientError(f"Block {height} not found")
        if not include_txs:
            return replace(block, transactions=())
        return block

    async def balance_of(self, address: str) -> int:
        self._check("balance_of")
        return self.balances.get(address, 0)

    async def pending_transactions(self) -> list[RemoteTransaction]:
        self._check("pending_transactions")
        return list(self.mempool)

    async def close(self) -> None:
        self.closed = True


def make_tx(
    tx_hash: str,
    from_address: str,
    to_address: str,
    amount: int = 1,
    height: int = 0,
    block_hash: str = "",
    shard_number: int = 1,
    **kwargs,
) -> RemoteTransaction:
    """Build a node transaction."""
    return RemoteTransaction(
        hash=tx_hash,
        shard_number=shard_number,
        from_address=from_address,
        to_address=to_address,
        amount=amount,
        block_height=height,
        block_hash=block_hash,
        timestamp=kwargs.pop("timestamp", 1_700_000_000 + height),
        **kwargs,
    )


def make_block(
    height: int,
    block_hash: str,
    prev_hash: str = "",
    txs: tuple = (),
    creator: str = MINER,
    shard_number: int = 1,
) -> RemoteBlock:
    """
    Build a node block.

    Transactions given as (hash, from, to, amount) tuples are bound to
    the block.
    """
    transactions = tuple(
        tx if isinstance(tx, RemoteTransaction)
        else make_tx(*tx, height=height, block_hash=block_hash, shard_number=shard_number)
        for tx in txs
    )
    return RemoteBlock(
        shard_number=shard_number,
        height=height,
        hash=block_hash,
        prev_hash=prev_hash,
        creator=creator,
        timestamp=1_700_000_000 + height,
        transactions=transactions,
    )


def make_chain(
    hashes: list[str],
    txs: dict[int, tuple] | None = None,
    shard_number: int = 1,
) -> list[RemoteBlock]:
    """Build consecutive blocks from height 0 with the given hashes."""
    txs = txs or {}
    blocks = []
    prev_hash = ""
    for height, block_hash in enumerate(hashes):
        blocks.append(
            make_block(
                height,
                block_hash,
                prev_hash,
                txs.get(height, ()),
                shard_number=shard_number,
            )
        )
        prev_hash = block_hash
    return blocks
