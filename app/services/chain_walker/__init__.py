"""
Chain Walker Service.

Keeps the local replica of each shard converged with its node.

Key features:
- Reorg detection and rollback of stale blocks
- Forward replay of new blocks with account reconciliation
- Wholesale refresh of pending transactions
- Non-overlapping fixed-interval cycles
"""

from .core import ChainWalker, SyncReport
from .pending_mixin import PendingMixin
from .reconcile_mixin import ReconcileMixin
from .replay_mixin import ReplayMixin
from .rollback_mixin import RollbackMixin

__all__ = [
    "ChainWalker",
    "SyncReport",
    "PendingMixin",
    "ReconcileMixin",
    "ReplayMixin",
    "RollbackMixin",
]
