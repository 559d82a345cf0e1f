"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.account import Account
from app.models.base import Base
from app.models.block import Block
from app.models.enums import AccountType, TransactionType
from app.models.transaction import PendingTransaction, Transaction

__all__ = [
    # Base
    "Base",
    # Enums
    "AccountType",
    "TransactionType",
    # Chain replica
    "Block",
    "Transaction",
    "PendingTransaction",
    # Derived state
    "Account",
]
