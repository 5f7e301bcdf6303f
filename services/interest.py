"""
Interest accrual for savings assets.

Simple interest is accrued per calendar day on the running balance; the
balance only changes at transaction dates, so compounding happens through
deposits and withdrawals alone. A span between two balance changes is
decomposed over every rate interval it overlaps, so a rate change falling
strictly between two transactions is neither skipped nor counted twice.

Day arithmetic works on ``datetime.date`` values, never on timestamps.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from services.common import signed_quantity, to_day
from services.positions import net_invested, up_to

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class SavingsAccrual:
    """Balance and interest of a savings asset as of a given day."""
    balance: float = 0.0
    accrued_interest: float = 0.0
    total_cost: float = 0.0

    @property
    def total_value(self) -> float:
        return self.balance + self.accrued_interest


def _last_covered_day(rate) -> date:
    """Last calendar day an interval covers (its end date is exclusive)."""
    if rate.end_date is None:
        return date.max
    return to_day(rate.end_date) - timedelta(days=1)


def interest_for_span(
    balance: float,
    span_start: date,
    span_end: date,
    rate_history: Sequence
) -> float:
    """
    Interest earned by a constant balance between two days.

    Every overlap with a rate interval is counted inclusive of both of its
    endpoints. Spans of zero length, and days no interval covers, earn
    nothing.
    """
    if balance <= 0 or span_start >= span_end:
        return 0.0

    interest = 0.0
    covered_days = 0
    for rate in rate_history:
        overlap_start = max(span_start, to_day(rate.start_date))
        overlap_end = min(span_end, _last_covered_day(rate))
        if overlap_start > overlap_end:
            continue
        overlap_days = (overlap_end - overlap_start).days + 1
        daily_rate = (rate.rate / 100) / DAYS_PER_YEAR
        interest += balance * daily_rate * overlap_days
        covered_days += overlap_days

    if covered_days == 0:
        logger.debug(f"No rate interval covers {span_start} -> {span_end}, accruing 0")
    return interest


def accrue_interest(
    transactions: Iterable,
    rate_history: Sequence,
    as_of: date
) -> SavingsAccrual:
    """
    Replay a savings ledger and accumulate interest up to ``as_of``.

    Args:
        transactions: Ledger of a single savings asset, in any order;
            transactions dated after as_of are ignored
        rate_history: Non-overlapping rate intervals of that asset
        as_of: Day the valuation is made

    Returns:
        SavingsAccrual with final balance, accrued interest and net invested
    """
    ordered: List = sorted(up_to(transactions, as_of), key=lambda t: to_day(t.transaction_date))

    balance = 0.0
    cursor = date.min
    interest = 0.0

    for tx in ordered:
        tx_day = to_day(tx.transaction_date)
        if balance > 0:
            interest += interest_for_span(balance, cursor, tx_day, rate_history)
        balance += signed_quantity(tx)
        cursor = tx_day

    if balance > 0 and cursor < as_of:
        interest += interest_for_span(balance, cursor, as_of, rate_history)

    return SavingsAccrual(
        balance=balance,
        accrued_interest=interest,
        total_cost=net_invested(ordered),
    )


def current_rate(rate_history: Sequence, as_of: date) -> Optional[float]:
    """Rate of the interval covering ``as_of``, or None."""
    for rate in rate_history:
        if to_day(rate.start_date) <= as_of <= _last_covered_day(rate):
            return rate.rate
    return None
