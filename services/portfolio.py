"""
Portfolio service for aggregating enriched assets into portfolio totals
and per-category subtotals.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from models import AssetType
from services.common import CATEGORY_LABELS, is_closed_position, percentage_of
from services.positions import filter_for_asset, net_invested
from services.valuation import AssetWithPrice, resolve_asset_type

logger = logging.getLogger(__name__)


@dataclass
class PortfolioMetrics:
    """Portfolio-wide totals."""
    total_value: float
    total_invested: float
    total_profit_loss: float
    total_profit_loss_percentage: float


@dataclass
class CategoryItem:
    """One asset as displayed inside its category."""
    name: str
    symbol: str
    value: float
    quantity: float
    current_price: float
    average_price: float
    percentage: float  # Share of the whole portfolio
    profit_loss: float
    profit_loss_percentage: float
    interest_rate: Optional[float] = None
    accrued_interest: Optional[float] = None


@dataclass
class Category:
    """Assets of one type with their subtotals."""
    name: str
    asset_type: str
    total: float
    invested: float
    percentage: float
    active_items: List[CategoryItem] = field(default_factory=list)
    archived_items: List[CategoryItem] = field(default_factory=list)

    @property
    def profit_loss(self) -> float:
        return self.total - self.invested

    @property
    def profit_loss_percentage(self) -> float:
        return percentage_of(self.profit_loss, self.invested)


class PortfolioService:
    """
    Service for portfolio-level aggregation.
    All methods are pure functions of the enriched assets and the ledger.
    """

    @staticmethod
    def invested_in(assets: Sequence[AssetWithPrice], transactions: Sequence) -> float:
        """Net amount invested in the given assets, recomputed from their own transactions."""
        return sum(net_invested(filter_for_asset(transactions, asset.id)) for asset in assets)

    @staticmethod
    def compute_portfolio_metrics(
        enriched_assets: Sequence[AssetWithPrice],
        transactions: Sequence
    ) -> PortfolioMetrics:
        """
        Calculate total portfolio value, net invested amount and profit/loss.

        Args:
            enriched_assets: Every asset valued by the ValuationEngine
            transactions: Full ledger

        Returns:
            PortfolioMetrics; the percentage is 0.0 when nothing is invested
        """
        total_value = sum(asset.total_value for asset in enriched_assets)
        total_invested = PortfolioService.invested_in(enriched_assets, transactions)
        total_profit_loss = total_value - total_invested

        return PortfolioMetrics(
            total_value=total_value,
            total_invested=total_invested,
            total_profit_loss=total_profit_loss,
            total_profit_loss_percentage=percentage_of(total_profit_loss, total_invested),
        )

    @staticmethod
    def to_category_item(asset: AssetWithPrice, total_value: float) -> CategoryItem:
        is_savings = asset.asset_type == AssetType.SAVINGS
        return CategoryItem(
            name=asset.name,
            symbol=asset.symbol,
            value=asset.total_value,
            quantity=asset.total_quantity,
            current_price=asset.current_price,
            average_price=asset.average_price,
            percentage=percentage_of(asset.total_value, total_value),
            profit_loss=asset.profit_loss,
            profit_loss_percentage=asset.profit_loss_percentage,
            interest_rate=asset.interest_rate if is_savings else None,
            accrued_interest=asset.accrued_interest if is_savings else None,
        )

    @staticmethod
    def group_by_category(
        enriched_assets: Sequence[AssetWithPrice],
        transactions: Sequence,
        total_value: float
    ) -> List[Category]:
        """
        Group assets by type, in the fixed order etf, crypto, savings.

        Assets whose position is closed go to ``archived_items`` but still
        count in the category totals.

        Args:
            enriched_assets: Every asset valued by the ValuationEngine
            transactions: Full ledger
            total_value: Portfolio total used for the percentage shares

        Returns:
            One Category per asset type, empty ones included
        """
        by_type: Dict[AssetType, List[AssetWithPrice]] = {t: [] for t in CATEGORY_LABELS}
        for asset in enriched_assets:
            by_type[resolve_asset_type(asset.asset_type, asset.name)].append(asset)

        categories = []
        for asset_type, assets in by_type.items():
            total = sum(asset.total_value for asset in assets)
            active, archived = [], []
            for asset in assets:
                item = PortfolioService.to_category_item(asset, total_value)
                if is_closed_position(asset.total_quantity):
                    archived.append(item)
                else:
                    active.append(item)

            categories.append(Category(
                name=CATEGORY_LABELS[asset_type],
                asset_type=asset_type.value,
                total=total,
                invested=PortfolioService.invested_in(assets, transactions),
                percentage=percentage_of(total, total_value),
                active_items=active,
                archived_items=archived,
            ))
        return categories

    @staticmethod
    def top_holdings(enriched_assets: Sequence[AssetWithPrice], limit: int = 5) -> List[AssetWithPrice]:
        """Largest open positions by current value."""
        holdings = [a for a in enriched_assets if not is_closed_position(a.total_quantity)]
        holdings.sort(key=lambda a: a.total_value, reverse=True)
        return holdings[:limit]
