"""
Common utilities and shared functions.
Symbol normalization, calendar-day helpers and ledger sign conventions.
"""

import logging
import math
from datetime import date, datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo

from models import AssetType, TransactionType

logger = logging.getLogger(__name__)

# Quantities closer to zero than this count as a closed position
QUANTITY_EPSILON = 1e-9

CATEGORY_LABELS = {
    AssetType.ETF: "ETFs & Funds",
    AssetType.CRYPTO: "Crypto",
    AssetType.SAVINGS: "Savings",
}


def normalize_symbol(
    symbol: str,
    asset_type: str,
    exchange_suffix: str = ".PA",
    currency: str = "EUR"
) -> str:
    """
    Convert an asset symbol to yfinance format based on asset type.

    Args:
        symbol: Asset symbol (e.g., "CW8", "IWDA.AS", "BTC")
        asset_type: Asset type ("etf", "crypto", "savings")
        exchange_suffix: Suffix appended to ETF symbols without an exchange
        currency: Quote currency for crypto pairs

    Returns:
        Properly formatted yfinance symbol

    Examples:
        >>> normalize_symbol("CW8", "etf")
        'CW8.PA'
        >>> normalize_symbol("IWDA.AS", "etf")
        'IWDA.AS'
        >>> normalize_symbol("btc", "crypto")
        'BTC-EUR'
    """
    symbol = symbol.strip().upper()
    if asset_type == AssetType.ETF:
        if "." in symbol:
            return symbol
        return f"{symbol}{exchange_suffix}"
    elif asset_type == AssetType.CRYPTO:
        if "-" in symbol:
            return symbol
        return f"{symbol}-{currency.upper()}"
    else:
        logger.warning(f"No provider symbol for asset type: {asset_type}, returning symbol as-is")
        return symbol


def today(timezone: Optional[str] = None) -> date:
    """Current calendar day in the reporting timezone."""
    if timezone is None:
        from config import get_settings
        timezone = get_settings().reporting_timezone
    return datetime.now(ZoneInfo(timezone)).date()


def to_day(value: Union[date, datetime, str]) -> date:
    """Normalize a date, datetime or ISO string to a calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def signed_quantity(transaction) -> float:
    """Quantity delta of a transaction: +quantity for buy, -quantity for sell."""
    if transaction.transaction_type == TransactionType.BUY:
        return transaction.quantity
    return -transaction.quantity


def signed_amount(transaction) -> float:
    """Cost delta of a transaction: +total_amount for buy, -total_amount for sell."""
    if transaction.transaction_type == TransactionType.BUY:
        return transaction.total_amount
    return -transaction.total_amount


def percentage_of(part: float, whole: float) -> float:
    """part / whole * 100, or 0.0 when whole is zero."""
    if whole == 0:
        return 0.0
    return part / whole * 100


def is_closed_position(quantity: float) -> bool:
    """True when a quantity is zero (within float noise) or below."""
    return quantity <= 0 or math.isclose(quantity, 0.0, abs_tol=QUANTITY_EPSILON)
