"""
Closed tag sets for assets and transactions.
"""

from enum import Enum


class AssetType(str, Enum):
    """Kind of holding; selects the valuation strategy."""
    ETF = "etf"
    CRYPTO = "crypto"
    SAVINGS = "savings"


class TransactionType(str, Enum):
    """Direction of a ledger entry."""
    BUY = "buy"
    SELL = "sell"
