"""
Position calculator: running quantity and cost basis from a ledger.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List

from services.common import signed_amount, signed_quantity, to_day


@dataclass(frozen=True)
class Position:
    """Quantity held and net amount invested for one asset."""
    total_quantity: float = 0.0
    total_cost: float = 0.0

    @property
    def average_price(self) -> float:
        if self.total_quantity > 0:
            return self.total_cost / self.total_quantity
        return 0.0


def filter_for_asset(transactions: Iterable, asset_id) -> List:
    """Transactions belonging to one asset."""
    return [t for t in transactions if t.asset_id == asset_id]


def up_to(transactions: Iterable, day: date) -> List:
    """Transactions dated on or before ``day``."""
    return [t for t in transactions if to_day(t.transaction_date) <= day]


def calculate_position(transactions: Iterable) -> Position:
    """
    Fold a single asset's ledger into a Position.

    Order does not matter: buys add quantity and total_amount, sells
    subtract both. Sells exceeding buys yield a negative quantity.
    """
    total_quantity = 0.0
    total_cost = 0.0
    for tx in transactions:
        total_quantity += signed_quantity(tx)
        total_cost += signed_amount(tx)
    return Position(total_quantity=total_quantity, total_cost=total_cost)


def net_invested(transactions: Iterable) -> float:
    """Net cash put into an asset: buys minus sells, by total_amount."""
    return sum(signed_amount(tx) for tx in transactions)
