"""Price and exchange-rate provider protocols."""

from decimal import Decimal
from typing import Optional, Protocol

from finboard.domain.models import Currency, HoldingType
from finboard.domain.views import Quote


class PriceProvider(Protocol):
    """
    Protocol for upstream price sources.

    Implementations raise UpstreamUnavailableError when no usable price is returned;
    caching and stale fallback are the caller's concern.
    """

    def supports(self, holding_type: HoldingType) -> bool:
        """Return True if this provider prices holdings of the given type."""
        ...

    def fetch_price(self, symbol: str, currency_hint: Optional[Currency] = None) -> Quote:
        """Fetch the latest price for a normalized symbol."""
        ...


class RateProvider(Protocol):
    """Protocol for upstream exchange-rate sources."""

    def fetch_rates(self, base: Currency) -> dict[Currency, Decimal]:
        """Return multipliers from base into each supported currency."""
        ...
