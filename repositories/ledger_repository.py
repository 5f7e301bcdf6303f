"""
Ledger Repository - read-only view of assets and transactions for the dashboard.
"""

from typing import Optional, List
from sqlmodel import Session

from db_engine import get_session
from models import Asset, Transaction
from repositories.asset_repository import AssetRepository
from repositories.transaction_repository import TransactionRepository


class LedgerRepository:
    """Loads every asset and transaction, optionally inside a caller's session."""

    def __init__(self, session: Optional[Session] = None):
        self.session = session

    def list_assets(self) -> List[Asset]:
        if self.session is not None:
            return AssetRepository.get_all(session=self.session)
        with get_session() as session:
            return AssetRepository.get_all(session=session)

    def list_transactions(self) -> List[Transaction]:
        if self.session is not None:
            return TransactionRepository.get_all(session=self.session)
        with get_session() as session:
            return TransactionRepository.get_all(session=session)
