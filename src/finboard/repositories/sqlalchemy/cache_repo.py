"""SQLAlchemy implementation of CacheRepository (prices and exchange rates)."""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from finboard.domain.models import PriceCacheEntry, ExchangeRateEntry, Currency
from finboard.repositories.sqlalchemy.orm_models import PriceCacheORM, ExchangeRateORM


def _decimal(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


class SqlAlchemyCacheRepository:
    """SQLAlchemy-backed cache repository for upstream data; last write wins."""

    def __init__(self, db: Session):
        self._db = db

    # Price cache operations

    def get_price(self, symbol: str) -> Optional[PriceCacheEntry]:
        """Get the cached price for a symbol."""
        orm_price = (
            self._db.query(PriceCacheORM)
            .filter(PriceCacheORM.symbol == symbol.upper())
            .first()
        )
        return self._price_to_domain(orm_price) if orm_price else None

    def list_prices(self, symbols: Optional[list[str]] = None) -> list[PriceCacheEntry]:
        """List cached prices, optionally restricted to symbols."""
        query = self._db.query(PriceCacheORM)
        if symbols:
            query = query.filter(PriceCacheORM.symbol.in_([s.upper() for s in symbols]))
        return [self._price_to_domain(p) for p in query.order_by(PriceCacheORM.symbol).all()]

    def upsert_price(self, entry: PriceCacheEntry) -> PriceCacheEntry:
        """Insert or update a price cache entry."""
        symbol = entry.symbol.upper()
        orm_price = self._db.query(PriceCacheORM).filter(PriceCacheORM.symbol == symbol).first()

        if orm_price:
            orm_price.price = entry.price
            orm_price.currency = entry.currency
            orm_price.change_percent = entry.change_percent
            orm_price.change_absolute = entry.change_absolute
            orm_price.fetched_at = entry.fetched_at
            orm_price.source = entry.source
        else:
            orm_price = PriceCacheORM(
                symbol=symbol,
                price=entry.price,
                currency=entry.currency,
                change_percent=entry.change_percent,
                change_absolute=entry.change_absolute,
                fetched_at=entry.fetched_at,
                source=entry.source,
            )
            self._db.add(orm_price)

        self._db.commit()
        self._db.refresh(orm_price)
        return self._price_to_domain(orm_price)

    # Exchange rate cache operations

    def get_rate(self, from_currency: Currency, to_currency: Currency) -> Optional[ExchangeRateEntry]:
        """Get the cached rate for an ordered pair."""
        orm_rate = (
            self._db.query(ExchangeRateORM)
            .filter(
                ExchangeRateORM.from_currency == from_currency,
                ExchangeRateORM.to_currency == to_currency,
            )
            .first()
        )
        return self._rate_to_domain(orm_rate) if orm_rate else None

    def list_rates(self) -> list[ExchangeRateEntry]:
        """List all cached rates."""
        orm_rates = (
            self._db.query(ExchangeRateORM)
            .order_by(ExchangeRateORM.from_currency, ExchangeRateORM.to_currency)
            .all()
        )
        return [self._rate_to_domain(r) for r in orm_rates]

    def upsert_rate(self, entry: ExchangeRateEntry) -> ExchangeRateEntry:
        """Insert or update an exchange rate entry."""
        orm_rate = (
            self._db.query(ExchangeRateORM)
            .filter(
                ExchangeRateORM.from_currency == entry.from_currency,
                ExchangeRateORM.to_currency == entry.to_currency,
            )
            .first()
        )

        if orm_rate:
            orm_rate.rate = entry.rate
            orm_rate.fetched_at = entry.fetched_at
        else:
            orm_rate = ExchangeRateORM(
                from_currency=entry.from_currency,
                to_currency=entry.to_currency,
                rate=entry.rate,
                fetched_at=entry.fetched_at,
            )
            self._db.add(orm_rate)

        self._db.commit()
        self._db.refresh(orm_rate)
        return self._rate_to_domain(orm_rate)

    @staticmethod
    def _price_to_domain(orm: PriceCacheORM) -> PriceCacheEntry:
        """Convert ORM price to domain model."""
        return PriceCacheEntry(
            symbol=orm.symbol,
            price=Decimal(str(orm.price)),
            currency=orm.currency,
            fetched_at=orm.fetched_at,
            source=orm.source,
            change_percent=_decimal(orm.change_percent),
            change_absolute=_decimal(orm.change_absolute),
        )

    @staticmethod
    def _rate_to_domain(orm: ExchangeRateORM) -> ExchangeRateEntry:
        """Convert ORM rate to domain model."""
        return ExchangeRateEntry(
            from_currency=orm.from_currency,
            to_currency=orm.to_currency,
            rate=Decimal(str(orm.rate)),
            fetched_at=orm.fetched_at,
        )
