"""
Account Ranking Service.

Balance-ranked account listings per shard, served from periodically
rebuilt in-memory snapshots.
"""

from .core import RankedAccountCache, RankedAccountSnapshot, page_bounds
from .schemas import (
    AccountDetail,
    AccountRow,
    AccountsPage,
    AccountTransaction,
    RankedAccount,
)
from .service import AccountRankingService

__all__ = [
    "AccountDetail",
    "AccountRankingService",
    "AccountRow",
    "AccountsPage",
    "AccountTransaction",
    "RankedAccount",
    "RankedAccountCache",
    "RankedAccountSnapshot",
    "page_bounds",
]
