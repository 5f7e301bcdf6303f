"""
Chart service: day-by-day replay of the ledger for the performance chart.
"""

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from config import get_settings
from services.common import to_day, today
from services.positions import filter_for_asset
from services.valuation import AssetWithPrice, strategy_class_for

logger = logging.getLogger(__name__)

DATE_KEY = "date"

ChartDataPoint = Dict[str, Union[str, float]]


class ChartService:
    """
    Builds the wide-format time series consumed by the chart widget: one
    point per calendar day, each with a ``date`` label and one value per
    asset name.
    """

    @staticmethod
    def get_dates(start_date: date, end_date: date) -> List[date]:
        """Every calendar day from start_date to end_date, both included."""
        return [start_date + timedelta(days=n) for n in range((end_date - start_date).days + 1)]

    @staticmethod
    def series_labels(enriched_assets: Sequence[AssetWithPrice]) -> List[str]:
        """Column label per asset: its name, or 'name (symbol)' when it collides with another or with 'date'."""
        counts = Counter(asset.name for asset in enriched_assets)
        return [
            asset.name if counts[asset.name] == 1 and asset.name != DATE_KEY
            else f"{asset.name} ({asset.symbol})"
            for asset in enriched_assets
        ]

    @staticmethod
    def build_time_series(
        enriched_assets: Sequence[AssetWithPrice],
        transactions: Sequence,
        as_of: Optional[date] = None,
        date_format: Optional[str] = None
    ) -> List[ChartDataPoint]:
        """
        Value every asset on every day from the first transaction to ``as_of``.

        Args:
            enriched_assets: Assets valued by the ValuationEngine (for current prices)
            transactions: Full ledger
            as_of: Last day of the series (defaults to today)
            date_format: strftime format of the date label

        Returns:
            List of {"date": label, <asset name>: value, ...}; empty when
            there are no transactions
        """
        if not transactions:
            return []

        as_of = as_of or today()
        date_format = date_format or get_settings().chart_date_format
        first_day = min(to_day(t.transaction_date) for t in transactions)
        days = ChartService.get_dates(first_day, as_of)
        if not days:
            logger.warning(f"First transaction {first_day} is after {as_of}, empty chart")
            return []

        columns = {}
        for label, asset in zip(ChartService.series_labels(enriched_assets), enriched_assets):
            strategy = strategy_class_for(asset.asset_type, asset.name)
            own = filter_for_asset(transactions, asset.id)
            columns[label] = strategy.value_series(asset, own, days)

        points = []
        for i, day in enumerate(days):
            point: ChartDataPoint = {DATE_KEY: day.strftime(date_format)}
            for label, values in columns.items():
                point[label] = values[i]
            points.append(point)
        return points

    @staticmethod
    def time_series_frame(points: Sequence[ChartDataPoint], date_format: Optional[str] = None) -> pd.DataFrame:
        """Chart points as a DataFrame with a DatetimeIndex parsed back from the labels."""
        if not points:
            return pd.DataFrame()
        date_format = date_format or get_settings().chart_date_format
        frame = pd.DataFrame(list(points)).set_index(DATE_KEY)
        frame.index = pd.to_datetime(frame.index, format=date_format)
        return frame
