"""
Asset model - represents a tracked holding (ETF, crypto token or savings account).
"""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


class Asset(SQLModel, table=True):
    """Represents a holding in the portfolio. Only the name changes after creation."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)  # e.g., "Amundi MSCI World", "Livret A"
    symbol: str = Field(index=True)  # e.g., "CW8", "BTC", "LIVRETA"
    asset_type: str = Field(index=True)  # "etf", "crypto", "savings"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
