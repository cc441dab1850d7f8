"""Cached upstream data (prices and exchange rates)."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from finboard.domain.models.enums import Currency, PriceSource


def _naive_utc(dt: datetime) -> datetime:
    # Timestamps are persisted as naive UTC
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


@dataclass
class PriceCacheEntry:
    """Latest known price for a symbol; last write wins."""

    symbol: str
    price: Decimal
    currency: Currency
    fetched_at: datetime
    source: PriceSource
    change_percent: Optional[Decimal] = None
    change_absolute: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if isinstance(self.currency, str):
            self.currency = Currency(self.currency)
        if isinstance(self.source, str):
            self.source = PriceSource(self.source)

    def is_stale(self, now: datetime, ttl_minutes: int) -> bool:
        return _naive_utc(now) - _naive_utc(self.fetched_at) > timedelta(minutes=ttl_minutes)


@dataclass
class ExchangeRateEntry:
    """Cached rate for an ordered currency pair."""

    from_currency: Currency
    to_currency: Currency
    rate: Decimal
    fetched_at: datetime

    def __post_init__(self) -> None:
        if isinstance(self.from_currency, str):
            self.from_currency = Currency(self.from_currency)
        if isinstance(self.to_currency, str):
            self.to_currency = Currency(self.to_currency)

    def is_stale(self, now: datetime, ttl_minutes: int) -> bool:
        return _naive_utc(now) - _naive_utc(self.fetched_at) > timedelta(minutes=ttl_minutes)
