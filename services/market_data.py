"""
Market data service for fetching current unit prices of ETFs and crypto.
Quotes come from yfinance, are retried with tenacity, cached for a short
freshness window and rate limited per provider.

This is the only place prices can fail: callers always get a number back,
either a fresh quote, the last known one, or 0.0.
"""

import yfinance as yf
import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional

from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from config import Settings, get_settings
from models import AssetType
from services.common import normalize_symbol
from services.exceptions import PriceFetchError
from services.price_cache import PriceCache, SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

PROVIDER_KEY = "yfinance"
SAVINGS_UNIT_PRICE = 1.0


@dataclass(frozen=True)
class PriceQuote:
    """Unit price plus whatever market details the provider returned."""
    price: float
    change_24h: Optional[float] = None
    day_high: Optional[float] = None
    day_low: Optional[float] = None
    previous_close: Optional[float] = None
    volume: Optional[int] = None
    is_stale: bool = False


UNAVAILABLE = PriceQuote(price=0.0, is_stale=True)


class MarketDataService:
    """
    Service for fetching current prices with cache, rate limit and retry.
    The cache and limiter are injected so one pair can be shared by every
    request of the process.
    """

    def __init__(
        self,
        cache: Optional[PriceCache] = None,
        limiter: Optional[SlidingWindowRateLimiter] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        if cache is None:
            cache = PriceCache(ttl_seconds=self.settings.price_cache_ttl_seconds)
        if limiter is None:
            limiter = SlidingWindowRateLimiter(
                max_calls=self.settings.price_rate_limit_calls,
                window_seconds=self.settings.price_rate_limit_window_seconds
            )
        self.cache = cache
        self.limiter = limiter

    @staticmethod
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(Exception),
        reraise=True
    )
    def _fetch_ticker_info(yf_symbol: str) -> Dict:
        """Fetch ticker info with retry logic."""
        ticker = yf.Ticker(yf_symbol)
        return ticker.info

    @staticmethod
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(Exception),
        reraise=True
    )
    def _fetch_last_close(yf_symbol: str) -> Optional[float]:
        """Fetch the latest close from one day of history, with retry logic."""
        hist = yf.Ticker(yf_symbol).history(period="1d")
        if hist.empty:
            return None
        return float(hist['Close'].iloc[-1])

    def provider_symbol(self, symbol: str, asset_type: str) -> str:
        """Symbol as the quote provider expects it."""
        return normalize_symbol(
            symbol,
            asset_type,
            exchange_suffix=self.settings.default_exchange_suffix,
            currency=self.settings.reporting_currency
        )

    def _fetch_quote(self, yf_symbol: str) -> PriceQuote:
        """Fetch a quote from yfinance, falling back to the last daily close."""
        info = MarketDataService._fetch_ticker_info(yf_symbol) or {}

        # Try multiple price fields
        price = info.get('currentPrice') or info.get('regularMarketPrice') or info.get('lastPrice')
        if price is None:
            price = MarketDataService._fetch_last_close(yf_symbol)
        if not price:
            raise PriceFetchError(yf_symbol, "no price in provider response")

        volume = info.get('volume') or info.get('regularMarketVolume')
        return PriceQuote(
            price=float(price),
            change_24h=info.get('regularMarketChangePercent'),
            day_high=info.get('dayHigh') or info.get('regularMarketDayHigh'),
            day_low=info.get('dayLow') or info.get('regularMarketDayLow'),
            previous_close=info.get('previousClose') or info.get('regularMarketPreviousClose'),
            volume=int(volume) if volume else None,
        )

    def _fallback(self, key: str) -> PriceQuote:
        cached = self.cache.get_last_known(key)
        if cached is None:
            return UNAVAILABLE
        return replace(cached, is_stale=True)

    def get_quote(self, symbol: str, asset_type: str) -> PriceQuote:
        """
        Current quote for an asset. Never raises.

        Args:
            symbol: Asset symbol as stored
            asset_type: "etf", "crypto" or "savings"

        Returns:
            Fresh quote, last known quote marked stale, or a 0.0 quote
        """
        if asset_type == AssetType.SAVINGS:
            return PriceQuote(price=SAVINGS_UNIT_PRICE)

        key = self.provider_symbol(symbol, asset_type)
        fresh = self.cache.get_fresh(key)
        if fresh is not None:
            return fresh

        if not self.limiter.try_acquire(PROVIDER_KEY):
            logger.warning(f"Rate limit reached for {PROVIDER_KEY}, using cached price for {key}")
            return self._fallback(key)

        try:
            quote = self._fetch_quote(key)
        except Exception as e:
            logger.error(f"Error fetching price for {symbol}: {e}")
            return self._fallback(key)

        self.cache.set(key, quote)
        logger.debug(f"Fetched {key} at {quote.price}")
        return quote

    def get_current_price(self, symbol: str, asset_type: str) -> float:
        """Current unit price, last known price, or 0.0."""
        return self.get_quote(symbol, asset_type).price

    def clear_cache(self):
        """Drop every cached quote."""
        self.cache.clear()
        logger.info("Market data cache cleared")
