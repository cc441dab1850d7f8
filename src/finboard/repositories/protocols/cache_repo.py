"""Cache repository protocol."""

from typing import Protocol, Optional

from finboard.domain.models import PriceCacheEntry, ExchangeRateEntry, Currency


class CacheRepository(Protocol):
    """Interface for the shared price and exchange-rate caches."""

    def get_price(self, symbol: str) -> Optional[PriceCacheEntry]:
        """Get the cached price for a symbol."""
        ...

    def list_prices(self, symbols: Optional[list[str]] = None) -> list[PriceCacheEntry]:
        """List cached prices."""
        ...

    def upsert_price(self, entry: PriceCacheEntry) -> PriceCacheEntry:
        """Insert or update a price cache entry."""
        ...

    def get_rate(self, from_currency: Currency, to_currency: Currency) -> Optional[ExchangeRateEntry]:
        """Get the cached rate for an ordered pair."""
        ...

    def list_rates(self) -> list[ExchangeRateEntry]:
        """List all cached rates."""
        ...

    def upsert_rate(self, entry: ExchangeRateEntry) -> ExchangeRateEntry:
        """Insert or update an exchange rate entry."""
        ...
