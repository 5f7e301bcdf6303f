"""
Service layer exceptions.

Exception Hierarchy:
    ServiceError (base)
    ├── UnknownAssetTypeError
    ├── InvalidTransactionError
    └── PriceFetchError
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class UnknownAssetTypeError(ServiceError):
    """Raised when an asset carries a type tag no valuation strategy handles."""

    def __init__(self, asset_type: str, asset_name: str = "") -> None:
        self.asset_type = asset_type
        self.asset_name = asset_name
        where = f" for asset '{asset_name}'" if asset_name else ""
        super().__init__(f"Unknown asset type '{asset_type}'{where}")


class InvalidTransactionError(ServiceError):
    """Raised when a transaction is rejected on write."""


class PriceFetchError(ServiceError):
    """Raised by a quote provider; absorbed by MarketDataService."""

    def __init__(self, symbol: str, reason: str) -> None:
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Could not fetch price for {symbol}: {reason}")
