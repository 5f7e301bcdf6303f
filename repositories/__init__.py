"""
Repositories package for NestEgg.
Provides data access layer for all database operations.
"""

from repositories.asset_repository import AssetRepository
from repositories.transaction_repository import TransactionRepository
from repositories.interest_rate_repository import InterestRateRepository
from repositories.ledger_repository import LedgerRepository

__all__ = [
    'AssetRepository',
    'TransactionRepository',
    'InterestRateRepository',
    'LedgerRepository',
]
