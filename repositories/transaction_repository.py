"""
Transaction Repository - data access layer for Transaction model.
The ledger is append-only: there is no update or delete.
"""

import logging
import math
from typing import Optional, List
from datetime import date
from sqlmodel import Session, select

from db_engine import get_engine
from models import Transaction, TransactionType
from services.common import to_day, today
from services.exceptions import InvalidTransactionError

logger = logging.getLogger(__name__)


class TransactionRepository:
    """Repository for Transaction operations."""

    @staticmethod
    def add(
        asset_id: int,
        transaction_date: date,
        transaction_type: str,
        quantity: float,
        price_per_unit: float,
        total_amount: Optional[float] = None,
        session: Optional[Session] = None
    ) -> Transaction:
        """
        Add a new transaction to the database.

        Args:
            asset_id: Asset ID for the transaction
            transaction_date: Date of the transaction
            transaction_type: 'buy' or 'sell'
            quantity: Number of units, strictly positive
            price_per_unit: Price per unit
            total_amount: Amount paid or received; derived as
                quantity * price_per_unit when omitted
            session: Optional existing session for transaction reuse

        Returns:
            Created Transaction object

        Raises:
            InvalidTransactionError: On an unknown type, a non-positive quantity,
                a negative price or a future date
        """
        try:
            transaction_type = TransactionType(transaction_type).value
        except ValueError:
            raise InvalidTransactionError(f"Unknown transaction type '{transaction_type}'") from None
        if quantity is None or quantity <= 0:
            raise InvalidTransactionError(f"Quantity must be positive, got {quantity}")
        if price_per_unit is None or price_per_unit < 0:
            raise InvalidTransactionError(f"Price per unit must not be negative, got {price_per_unit}")
        if to_day(transaction_date) > today():
            raise InvalidTransactionError(f"Transaction date {transaction_date} is in the future")

        derived = quantity * price_per_unit
        if total_amount is None:
            total_amount = derived
        elif not math.isclose(total_amount, derived, rel_tol=1e-6, abs_tol=0.01):
            logger.warning(
                f"Total amount {total_amount} differs from quantity x price {derived} "
                f"for asset {asset_id}; keeping the provided amount"
            )

        def _create_transaction(sess: Session) -> Transaction:
            transaction = Transaction(
                asset_id=asset_id,
                transaction_date=transaction_date,
                transaction_type=transaction_type,
                quantity=quantity,
                price_per_unit=price_per_unit,
                total_amount=total_amount
            )
            sess.add(transaction)
            sess.commit()
            sess.refresh(transaction)
            return transaction

        if session is not None:
            return _create_transaction(session)
        else:
            with Session(get_engine()) as session:
                return _create_transaction(session)

    @staticmethod
    def get_by_asset(asset_id: int, session: Optional[Session] = None) -> List[Transaction]:
        """
        Retrieve all transactions for a specific asset, oldest first.

        Args:
            asset_id: Asset ID to look up
            session: Optional existing session for transaction reuse

        Returns:
            List of Transaction objects
        """
        def _get_by_asset(sess: Session) -> List[Transaction]:
            statement = (
                select(Transaction)
                .where(Transaction.asset_id == asset_id)
                .order_by(Transaction.transaction_date, Transaction.id)
            )
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _get_by_asset(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_asset(session)

    @staticmethod
    def get_all(session: Optional[Session] = None) -> List[Transaction]:
        """
        Retrieve all transactions from the database, newest first.

        Args:
            session: Optional existing session for transaction reuse

        Returns:
            List of all Transaction objects
        """
        def _get_all(sess: Session) -> List[Transaction]:
            statement = select(Transaction).order_by(
                Transaction.transaction_date.desc(), Transaction.id.desc()
            )
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine()) as session:
                return _get_all(session)

    @staticmethod
    def get_by_id(transaction_id: int, session: Optional[Session] = None) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Args:
            transaction_id: Transaction ID to look up
            session: Optional existing session for transaction reuse

        Returns:
            Transaction object or None if not found
        """
        def _get_by_id(sess: Session) -> Optional[Transaction]:
            return sess.get(Transaction, transaction_id)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)
