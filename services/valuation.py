"""
Asset valuation engine.

Each asset type maps to a valuation strategy:
- PriceDrivenValuation (etf, crypto): quantity held times the current quote
- InterestDrivenValuation (savings): balance plus interest accrued from the
  asset's rate history, at a fixed unit price of 1

Strategies also replay an asset's value over a run of days, which the
time-series builder uses for the performance chart.
"""

import bisect
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Type

import numpy as np

from models import AssetType
from services.common import percentage_of, signed_quantity, to_day, today
from services.exceptions import UnknownAssetTypeError
from services.interest import accrue_interest, current_rate
from services.market_data import SAVINGS_UNIT_PRICE
from services.positions import calculate_position, filter_for_asset, up_to
from services.protocols import PriceSource, RateSource

logger = logging.getLogger(__name__)


@dataclass
class AssetWithPrice:
    """An asset enriched with its current price and position metrics."""
    id: Optional[int]
    name: str
    symbol: str
    asset_type: str
    current_price: float
    total_quantity: float
    total_value: float
    total_cost: float
    average_price: float
    profit_loss: float
    profit_loss_percentage: float
    change_24h: Optional[float] = None
    day_high: Optional[float] = None
    day_low: Optional[float] = None
    previous_close: Optional[float] = None
    volume: Optional[int] = None
    is_price_stale: bool = False
    # Savings only
    accrued_interest: Optional[float] = None
    interest_rate: Optional[float] = None
    rate_history: Tuple = ()


def resolve_asset_type(asset_type: str, asset_name: str = "") -> AssetType:
    """Parse a stored type tag, rejecting anything outside the closed set."""
    try:
        return AssetType(asset_type)
    except ValueError:
        raise UnknownAssetTypeError(str(asset_type), asset_name) from None


def return_on_cost(profit_loss: float, total_cost: float) -> float:
    """Profit/loss as a percentage of cost; 0.0 unless the cost is positive."""
    if total_cost > 0:
        return percentage_of(profit_loss, total_cost)
    return 0.0


def _ordered(transactions: Iterable) -> List:
    return sorted(transactions, key=lambda t: to_day(t.transaction_date))


class ValuationStrategy(ABC):
    """Valuation of one family of asset types."""

    @abstractmethod
    def enrich(self, asset, transactions: Sequence, as_of: date) -> AssetWithPrice:
        """Value an asset from its own (already filtered) transactions."""

    @staticmethod
    @abstractmethod
    def value_series(enriched: AssetWithPrice, transactions: Sequence, days: Sequence[date]) -> List[float]:
        """Value of an asset on each of ``days``, from its own transactions."""


class PriceDrivenValuation(ValuationStrategy):
    """ETF and crypto: quantity times the current unit price."""

    def __init__(self, price_source: PriceSource):
        self.price_source = price_source

    def enrich(self, asset, transactions: Sequence, as_of: date) -> AssetWithPrice:
        quote = self.price_source.get_quote(asset.symbol, asset.asset_type)
        position = calculate_position(transactions)
        total_value = position.total_quantity * quote.price
        profit_loss = total_value - position.total_cost

        return AssetWithPrice(
            id=asset.id,
            name=asset.name,
            symbol=asset.symbol,
            asset_type=asset.asset_type,
            current_price=quote.price,
            total_quantity=position.total_quantity,
            total_value=total_value,
            total_cost=position.total_cost,
            average_price=position.average_price,
            profit_loss=profit_loss,
            profit_loss_percentage=return_on_cost(profit_loss, position.total_cost),
            change_24h=quote.change_24h,
            day_high=quote.day_high,
            day_low=quote.day_low,
            previous_close=quote.previous_close,
            volume=quote.volume,
            is_price_stale=quote.is_stale,
        )

    @staticmethod
    def value_series(enriched: AssetWithPrice, transactions: Sequence, days: Sequence[date]) -> List[float]:
        """
        Held quantity on each day times today's price.

        Past days are valued at the current price, not at the price of that
        day: no historical quotes are stored.
        """
        if not transactions:
            return [0.0] * len(days)

        ordered = _ordered(transactions)
        tx_days = np.array([to_day(t.transaction_date).toordinal() for t in ordered])
        held_after = np.cumsum([signed_quantity(t) for t in ordered], dtype=float)
        day_ordinals = np.array([d.toordinal() for d in days])

        # Number of transactions dated on or before each day
        counts = np.searchsorted(tx_days, day_ordinals, side='right')
        held = np.where(counts > 0, held_after[np.maximum(counts - 1, 0)], 0.0)
        return [float(v) for v in held * enriched.current_price]


class InterestDrivenValuation(ValuationStrategy):
    """Savings: balance plus accrued interest, unit price fixed at 1."""

    def __init__(self, rate_source: RateSource):
        self.rate_source = rate_source

    def enrich(self, asset, transactions: Sequence, as_of: date) -> AssetWithPrice:
        rate_history = tuple(self.rate_source.get_interest_rate_history(asset.id))
        accrual = accrue_interest(transactions, rate_history, as_of)
        average_price = accrual.total_cost / accrual.balance if accrual.balance > 0 else 0.0

        return AssetWithPrice(
            id=asset.id,
            name=asset.name,
            symbol=asset.symbol,
            asset_type=asset.asset_type,
            current_price=SAVINGS_UNIT_PRICE,
            total_quantity=accrual.balance,
            total_value=accrual.total_value,
            total_cost=accrual.total_cost,
            average_price=average_price,
            profit_loss=accrual.accrued_interest,
            profit_loss_percentage=return_on_cost(accrual.accrued_interest, accrual.total_cost),
            accrued_interest=accrual.accrued_interest,
            interest_rate=current_rate(rate_history, as_of),
            rate_history=rate_history,
        )

    @staticmethod
    def value_series(enriched: AssetWithPrice, transactions: Sequence, days: Sequence[date]) -> List[float]:
        """Balance plus interest accrued up to each day."""
        ordered = _ordered(transactions)
        tx_days = [to_day(t.transaction_date) for t in ordered]
        values = []
        for day in days:
            known = ordered[:bisect.bisect_right(tx_days, day)]
            if not known:
                values.append(0.0)
                continue
            values.append(accrue_interest(known, enriched.rate_history, day).total_value)
        return values


STRATEGY_CLASSES: Dict[AssetType, Type[ValuationStrategy]] = {
    AssetType.ETF: PriceDrivenValuation,
    AssetType.CRYPTO: PriceDrivenValuation,
    AssetType.SAVINGS: InterestDrivenValuation,
}


def strategy_class_for(asset_type: str, asset_name: str = "") -> Type[ValuationStrategy]:
    """Strategy class for a type tag; raises UnknownAssetTypeError."""
    return STRATEGY_CLASSES[resolve_asset_type(asset_type, asset_name)]


class ValuationEngine:
    """
    Turns assets plus the ledger into AssetWithPrice records.

    Args:
        price_source: Quote provider for price-driven assets
        rate_source: Rate history provider for savings assets
        max_workers: Threads used by enrich_assets
    """

    def __init__(self, price_source: PriceSource, rate_source: RateSource, max_workers: int = 5):
        instances = {
            PriceDrivenValuation: PriceDrivenValuation(price_source),
            InterestDrivenValuation: InterestDrivenValuation(rate_source),
        }
        self._strategies: Dict[AssetType, ValuationStrategy] = {
            asset_type: instances[strategy_class]
            for asset_type, strategy_class in STRATEGY_CLASSES.items()
        }
        self.max_workers = max_workers

    def strategy_for(self, asset_type: str, asset_name: str = "") -> ValuationStrategy:
        return self._strategies[resolve_asset_type(asset_type, asset_name)]

    def enrich_asset(self, asset, transactions: Iterable, as_of: Optional[date] = None) -> AssetWithPrice:
        """
        Value one asset.

        Args:
            asset: Asset record
            transactions: Full ledger; filtered to the asset and to days up to as_of here
            as_of: Valuation day (defaults to today in the reporting timezone)
        """
        as_of = as_of or today()
        strategy = self.strategy_for(asset.asset_type, asset.name)
        own = filter_for_asset(up_to(transactions, as_of), asset.id)
        return strategy.enrich(asset, own, as_of)

    def enrich_assets(self, assets: Sequence, transactions: Sequence, as_of: Optional[date] = None) -> List[AssetWithPrice]:
        """Value every asset concurrently, preserving input order."""
        if not assets:
            return []
        as_of = as_of or today()
        # Fail before any price fetch when a type tag is unknown
        for asset in assets:
            resolve_asset_type(asset.asset_type, asset.name)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            enriched = list(executor.map(
                lambda asset: self.enrich_asset(asset, transactions, as_of),
                assets
            ))
        logger.info(f"Valued {len(enriched)} assets as of {as_of}")
        return enriched
