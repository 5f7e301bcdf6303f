"""
Services package for NestEgg.
Provides the valuation core and its collaborators, separated from
presentation and data layers.
"""

from services.common import (
    normalize_symbol,
    today,
    CATEGORY_LABELS,
)
from services.exceptions import (
    ServiceError,
    UnknownAssetTypeError,
    InvalidTransactionError,
    PriceFetchError,
)
from services.positions import Position, calculate_position, net_invested
from services.interest import SavingsAccrual, accrue_interest, current_rate
from services.price_cache import PriceCache, SlidingWindowRateLimiter
from services.market_data import MarketDataService, PriceQuote
from services.valuation import (
    AssetWithPrice,
    ValuationEngine,
    PriceDrivenValuation,
    InterestDrivenValuation,
)
from services.portfolio import PortfolioService, PortfolioMetrics, Category, CategoryItem
from services.chart import ChartService
from services.dashboard import DashboardService, DashboardSnapshot

__all__ = [
    # Common utilities
    'normalize_symbol',
    'today',
    'CATEGORY_LABELS',
    # Errors
    'ServiceError',
    'UnknownAssetTypeError',
    'InvalidTransactionError',
    'PriceFetchError',
    # Valuation core
    'Position',
    'calculate_position',
    'net_invested',
    'SavingsAccrual',
    'accrue_interest',
    'current_rate',
    'AssetWithPrice',
    'ValuationEngine',
    'PriceDrivenValuation',
    'InterestDrivenValuation',
    'PortfolioService',
    'PortfolioMetrics',
    'Category',
    'CategoryItem',
    'ChartService',
    # Collaborators
    'PriceCache',
    'SlidingWindowRateLimiter',
    'MarketDataService',
    'PriceQuote',
    'DashboardService',
    'DashboardSnapshot',
]
