"""
Chain node client.

JSON-RPC access to a shard node: current tip, blocks by height,
balances and the mempool.
"""

from .client import ChainClient
from .types import ChainTip, RemoteBlock, RemoteTransaction, classify_transaction

__all__ = [
    "ChainClient",
    "ChainTip",
    "RemoteBlock",
    "RemoteTransaction",
    "classify_transaction",
]
