"""
Protocol interfaces for the collaborators the valuation core consumes.

Using typing.Protocol enables structural subtyping: repositories and the
market data service satisfy these without inheritance, and test fakes do
too.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from models import Asset, InterestRateHistory, Transaction
    from services.market_data import PriceQuote


class PriceSource(Protocol):
    """Current unit prices. Implementations never raise; 0.0 on total failure."""

    def get_quote(self, symbol: str, asset_type: str) -> PriceQuote:
        ...

    def get_current_price(self, symbol: str, asset_type: str) -> float:
        ...


class RateSource(Protocol):
    """Interest rate intervals of savings assets."""

    def get_interest_rate_history(self, asset_id: int) -> List[InterestRateHistory]:
        ...

    def get_current_rate(self, asset_id: int) -> Optional[float]:
        ...


class LedgerSource(Protocol):
    """Assets and their transactions."""

    def list_assets(self) -> List[Asset]:
        ...

    def list_transactions(self) -> List[Transaction]:
        ...
