"""
Interest Rate Repository - data access layer for InterestRateHistory model.
Also serves as the rate source of the valuation engine.
"""

import logging
from datetime import date, datetime
from typing import Optional, List
from sqlmodel import Session, select

from db_engine import get_engine
from models import InterestRateHistory
from services.common import today
from services.interest import current_rate

logger = logging.getLogger(__name__)


class InterestRateRepository:
    """Repository for InterestRateHistory operations."""

    @staticmethod
    def add_rate(
        asset_id: int,
        rate: float,
        start_date: date,
        session: Optional[Session] = None
    ) -> InterestRateHistory:
        """
        Start a new rate for a savings asset.

        The history stays contiguous and non-overlapping:
        - an interval covering ``start_date`` is closed there
        - an interval starting on the same day is replaced
        - when later intervals exist, the new one ends where the next begins

        Args:
            asset_id: Savings asset ID
            rate: Annual rate in percent
            start_date: First day the rate applies
            session: Optional existing session for transaction reuse

        Returns:
            Created InterestRateHistory object
        """
        def _add_rate(sess: Session) -> InterestRateHistory:
            statement = select(InterestRateHistory).where(InterestRateHistory.asset_id == asset_id)
            next_start = None
            for interval in sess.exec(statement).all():
                if interval.start_date == start_date:
                    logger.info(f"Replacing rate {interval.rate}% of asset {asset_id} from {start_date}")
                    sess.delete(interval)
                elif interval.start_date > start_date:
                    if next_start is None or interval.start_date < next_start:
                        next_start = interval.start_date
                elif interval.end_date is None or interval.end_date > start_date:
                    interval.end_date = start_date
                    interval.updated_at = datetime.now()
                    sess.add(interval)
                    logger.info(f"Closed rate {interval.rate}% of asset {asset_id} at {start_date}")

            entry = InterestRateHistory(
                asset_id=asset_id,
                rate=rate,
                start_date=start_date,
                end_date=next_start
            )
            sess.add(entry)
            sess.commit()
            sess.refresh(entry)
            return entry

        if session is not None:
            return _add_rate(session)
        else:
            with Session(get_engine()) as session:
                return _add_rate(session)

    @staticmethod
    def get_history(asset_id: int, session: Optional[Session] = None) -> List[InterestRateHistory]:
        """
        Retrieve the rate intervals of an asset, ordered by start date.

        Args:
            asset_id: Savings asset ID
            session: Optional existing session for transaction reuse

        Returns:
            List of InterestRateHistory objects
        """
        def _get_history(sess: Session) -> List[InterestRateHistory]:
            statement = (
                select(InterestRateHistory)
                .where(InterestRateHistory.asset_id == asset_id)
                .order_by(InterestRateHistory.start_date)
            )
            return list(sess.exec(statement).all())

        if session is not None:
            return _get_history(session)
        else:
            with Session(get_engine()) as session:
                return _get_history(session)

    @staticmethod
    def get_current_rate(
        asset_id: int,
        as_of: Optional[date] = None,
        session: Optional[Session] = None
    ) -> Optional[float]:
        """Rate in effect on ``as_of`` (default today), or None."""
        history = InterestRateRepository.get_history(asset_id, session=session)
        return current_rate(history, as_of or today())

    # RateSource protocol
    def get_interest_rate_history(self, asset_id: int) -> List[InterestRateHistory]:
        return InterestRateRepository.get_history(asset_id)
