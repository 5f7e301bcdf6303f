"""
InterestRateHistory model - piecewise annual rates for a savings asset.
"""

from typing import Optional
from datetime import date, datetime
from sqlmodel import SQLModel, Field


class InterestRateHistory(SQLModel, table=True):
    """
    One rate interval for a savings asset.
    Covers start_date (inclusive) up to end_date (exclusive); an open
    end_date means the rate is still in effect. Intervals of one asset are
    expected to be contiguous and non-overlapping.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    asset_id: int = Field(foreign_key="asset.id", index=True)
    rate: float  # Annual rate in percent, e.g. 3.0
    start_date: date = Field(index=True)
    end_date: Optional[date] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
