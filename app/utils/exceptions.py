"""
Exception handling utilities.

Defines categorized exception types for proper error handling.
"""

from sqlalchemy.exc import OperationalError


class ShardscanError(Exception):
    """Base exception for the chain indexer."""
    pass


class ChainClientError(ShardscanError):
    """Raised when a node RPC call fails or times out."""
    pass


class ChainClientConnectError(ChainClientError):
    """Raised when a node client cannot be established."""
    pass


class StoreError(ShardscanError):
    """Raised when a persistence operation fails."""
    pass


class ReconcileError(ShardscanError):
    """Raised when derived account state cannot be recomputed."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"Account {address}: {reason}")
        self.address = address
        self.reason = reason


class ChainDivergedError(ShardscanError):
    """Raised when a node block does not extend the stored chain."""

    def __init__(self, height: int, expected_parent: str, actual_parent: str) -> None:
        super().__init__(
            f"Block {height} links to {actual_parent}, stored parent is {expected_parent}"
        )
        self.height = height
        self.expected_parent = expected_parent
        self.actual_parent = actual_parent


# Exception categories based on handling strategy

# Must log but can continue - the phase ends, the next cycle retries
TRANSIENT_ERRORS = (
    ChainClientError,
    StoreError,
    ReconcileError,
    ChainDivergedError,
    OperationalError,
)


def is_transient(exc: Exception) -> bool:
    """
    Check if exception only ends the current phase.

    Args:
        exc: Exception to check

    Returns:
        True if the next scheduled cycle should retry
    """
    return isinstance(exc, TRANSIENT_ERRORS)
