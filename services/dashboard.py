"""
Dashboard service: one request-scoped pass from ledger to rendered numbers.

load ledger -> value every asset -> aggregate -> replay the chart series.
Nothing is kept between calls except what the price source caches.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from config import Settings, get_settings
from services.chart import ChartDataPoint, ChartService
from services.common import today
from services.portfolio import Category, PortfolioMetrics, PortfolioService
from services.positions import up_to
from services.protocols import LedgerSource, PriceSource, RateSource
from services.valuation import AssetWithPrice, ValuationEngine

logger = logging.getLogger(__name__)


@dataclass
class DashboardSnapshot:
    """Everything the dashboard page renders."""
    as_of: date
    assets: List[AssetWithPrice]
    metrics: PortfolioMetrics
    categories: List[Category]
    chart: List[ChartDataPoint] = field(default_factory=list)
    transaction_count: int = 0

    @property
    def has_stale_prices(self) -> bool:
        return any(asset.is_price_stale for asset in self.assets)


class DashboardService:
    """
    Builds DashboardSnapshots from a ledger, a price source and a rate source.
    """

    def __init__(
        self,
        ledger: LedgerSource,
        price_source: PriceSource,
        rate_source: RateSource,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.ledger = ledger
        self.engine = ValuationEngine(
            price_source,
            rate_source,
            max_workers=self.settings.max_workers
        )

    @classmethod
    def from_database(cls, price_source: PriceSource, settings: Optional[Settings] = None) -> "DashboardService":
        """Service reading assets, transactions and rates through the repositories."""
        from repositories import InterestRateRepository, LedgerRepository

        return cls(LedgerRepository(), price_source, InterestRateRepository(), settings=settings)

    def build(self, as_of: Optional[date] = None) -> DashboardSnapshot:
        """
        Compute the full dashboard.

        Errors are not caught here: a failed load or an unknown asset type
        aborts the whole snapshot.
        """
        as_of = as_of or today(self.settings.reporting_timezone)
        assets = self.ledger.list_assets()
        # Entries dated after as_of are left out of every figure
        transactions = up_to(self.ledger.list_transactions(), as_of)
        logger.info(f"Building dashboard for {len(assets)} assets, {len(transactions)} transactions")

        enriched = self.engine.enrich_assets(assets, transactions, as_of)
        metrics = PortfolioService.compute_portfolio_metrics(enriched, transactions)
        categories = PortfolioService.group_by_category(enriched, transactions, metrics.total_value)
        chart = ChartService.build_time_series(
            enriched,
            transactions,
            as_of=as_of,
            date_format=self.settings.chart_date_format
        )

        return DashboardSnapshot(
            as_of=as_of,
            assets=enriched,
            metrics=metrics,
            categories=categories,
            chart=chart,
            transaction_count=len(transactions),
        )
