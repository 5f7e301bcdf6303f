"""
Transaction model - represents a buy/sell transaction for an asset.
"""

from typing import Optional
from datetime import date, datetime
from sqlmodel import SQLModel, Field


class Transaction(SQLModel, table=True):
    """Represents a buy/sell transaction for an asset. Append-only."""
    id: Optional[int] = Field(default=None, primary_key=True)
    asset_id: int = Field(foreign_key="asset.id", index=True)
    transaction_type: str  # "buy" or "sell"
    quantity: float
    price_per_unit: float  # Price per unit at transaction time
    total_amount: float  # quantity * price_per_unit at insertion
    transaction_date: date = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
