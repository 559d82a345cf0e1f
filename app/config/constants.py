"""
Application constants.

Centralized constants for the application.
"""

# ========================================================================
# CHAIN CONSTANTS
# ========================================================================

# Sender of reward (coinbase) transactions, never an account
NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

SHARD_COUNT = 20

# Node RPC timeout (in seconds)
NODE_RPC_TIMEOUT = 30.0

# ========================================================================
# SYNC CONSTANTS
# ========================================================================

SYNC_INTERVAL_SECONDS = 10

# ========================================================================
# ACCOUNT RANKING CONSTANTS
# ========================================================================

MAX_RANKED_ACCOUNTS = 10000
RANKING_REFRESH_INTERVAL_SECONDS = 5

# Used when a shard has no aggregate balance, avoids division by zero
DEFAULT_TOTAL_BALANCE = 1

# ========================================================================
# SERVING CONSTANTS
# ========================================================================

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100
ACCOUNT_TX_LIST_LIMIT = 25
