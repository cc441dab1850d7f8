"""View models for prices, exchange rates and conversions."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from finboard.domain.models.enums import Currency, PriceSource


@dataclass
class Quote:
    """Raw price returned by an upstream price source."""

    symbol: str
    price: Decimal
    currency: Currency
    source: PriceSource
    change_percent: Optional[Decimal] = None
    change_absolute: Optional[Decimal] = None


@dataclass
class PriceResult:
    """Price served to callers, with cache freshness."""

    symbol: str
    price: Decimal
    currency: Currency
    fetched_at: datetime
    source: PriceSource
    is_stale: bool = False
    change_percent: Optional[Decimal] = None
    change_absolute: Optional[Decimal] = None
    error: Optional[str] = None


@dataclass
class PriceRefreshItem:
    """Outcome of refreshing one holding's price within a batch."""

    holding_id: str
    symbol: str
    result: Optional[PriceResult] = None
    error: Optional[str] = None


@dataclass
class RateResult:
    """Exchange rate served to callers, with cache freshness."""

    from_currency: Currency
    to_currency: Currency
    rate: Decimal
    fetched_at: Optional[datetime]
    is_stale: bool = False
    error: Optional[str] = None


@dataclass
class RateTable:
    """
    Consistent set of rates used for a single response.

    rates maps (from, to) to the multiplier converting from into to.
    """

    target: Currency
    rates: dict[tuple[Currency, Currency], Decimal] = field(default_factory=dict)
    has_stale: bool = False
    unavailable: list[str] = field(default_factory=list)
    fetched_at: Optional[datetime] = None

    def rates_used(self) -> dict[str, Decimal]:
        """Flat "FROM/TO" keyed view for responses."""
        return {f"{a.value}/{b.value}": rate for (a, b), rate in sorted(self.rates.items())}


@dataclass
class Conversion:
    """Result of a currency conversion; is_converted is False on fallback."""

    amount: Decimal
    currency: Currency
    rate: Optional[Decimal] = None
    is_converted: bool = True
