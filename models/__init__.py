"""
Database models for NestEgg.
All SQLModel table definitions are centralized here.
"""

from models.enums import AssetType, TransactionType
from models.asset import Asset
from models.transaction import Transaction
from models.interest_rate_history import InterestRateHistory

__all__ = [
    'AssetType',
    'TransactionType',
    'Asset',
    'Transaction',
    'InterestRateHistory',
]
