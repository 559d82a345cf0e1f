"""
Enumerations shared by database models.
"""

from enum import IntEnum


class TransactionType(IntEnum):
    """Kind of chain transaction."""

    TRANSFER = 0
    CONTRACT_CREATION = 1
    OTHER = 2  # reward / coinbase credits


class AccountType(IntEnum):
    """Kind of chain account."""

    EXTERNAL = 0
    CONTRACT = 1
