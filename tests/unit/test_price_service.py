"""
Unit tests for PriceService.

Tests cover:
- Cache symbol normalization per exchange
- TTL cache hits and forced refresh
- Stale fallback and upstream failure
- Batch refresh with per-item errors and symbol dedupe
"""

import pytest
from datetime import timedelta
from decimal import Decimal
from typing import Callable

from finboard.core.exceptions import UpstreamUnavailableError, ValidationError
from finboard.core.timezone import utc_now
from finboard.domain.models import Currency, Holding, HoldingType, PriceCacheEntry, PriceSource
from finboard.services import PriceService
from finboard.services.price_service import cache_symbol


def bare_holding(holding_type: HoldingType, symbol, exchange=None) -> Holding:
    return Holding(
        holding_id="h-1",
        name="Test",
        holding_type=holding_type,
        symbol=symbol,
        exchange=exchange,
    )


# =============================================================================
# CACHE SYMBOL
# =============================================================================


class TestCacheSymbol:
    """Tests for the symbol a holding is priced under."""

    @pytest.mark.parametrize(
        "holding_type,symbol,exchange,expected",
        [
            (HoldingType.ETF, "VAS", "ASX", "VAS.AX"),
            (HoldingType.STOCK, "fph", "NZX", "FPH.NZ"),
            (HoldingType.STOCK, "AAPL", "NASDAQ", "AAPL"),
            (HoldingType.ETF, "VAS.AX", "ASX", "VAS.AX"),
            (HoldingType.CRYPTO, "btc", None, "BTC"),
        ],
    )
    def test_symbol_normalization(self, holding_type, symbol, exchange, expected):
        assert cache_symbol(bare_holding(holding_type, symbol, exchange)) == expected

    def test_missing_symbol_rejected(self):
        with pytest.raises(ValidationError):
            cache_symbol(bare_holding(HoldingType.CRYPTO, None))


# =============================================================================
# SINGLE FETCH
# =============================================================================


class TestFetchPrice:
    """Tests for pricing a single holding."""

    def test_fetch_populates_cache(
        self,
        price_service: PriceService,
        price_provider,
        holding_factory: Callable[..., Holding],
    ):
        """
        GIVEN an ASX ETF and an empty cache
        WHEN I fetch its price twice
        THEN the provider is called once and the second read is a cache hit
        """
        holding = holding_factory(symbol="VAS", exchange="ASX")

        first = price_service.fetch_price(holding)
        second = price_service.fetch_price(holding)

        assert first.symbol == "VAS.AX"
        assert first.price == Decimal("100.00")
        assert first.currency == Currency.AUD
        assert first.change_percent == Decimal("1.25")
        assert second.is_stale is False
        assert price_provider.calls == ["VAS.AX"]

    def test_force_refresh_bypasses_cache(
        self,
        price_service: PriceService,
        price_provider,
        holding_factory: Callable[..., Holding],
    ):
        holding = holding_factory()

        price_service.fetch_price(holding)
        price_service.fetch_price(holding, force_refresh=True)

        assert price_provider.calls == ["VAS.AX", "VAS.AX"]

    def test_failure_serves_stale_cached_price(
        self,
        price_service: PriceService,
        price_provider,
        holding_factory: Callable[..., Holding],
    ):
        """
        GIVEN a cached price
        WHEN a forced refresh fails upstream
        THEN the cached price is served flagged stale with the error
        """
        holding = holding_factory()
        price_service.fetch_price(holding)
        price_provider.failing = True

        result = price_service.fetch_price(holding, force_refresh=True)

        assert result.price == Decimal("100.00")
        assert result.is_stale is True
        assert "Network unavailable" in result.error

    def test_failure_without_cache_raises(
        self,
        price_service: PriceService,
        price_provider,
        holding_factory: Callable[..., Holding],
    ):
        holding = holding_factory()
        price_provider.failing = True

        with pytest.raises(UpstreamUnavailableError):
            price_service.fetch_price(holding)

    def test_snapshot_holding_cannot_be_priced(
        self,
        price_service: PriceService,
        holding_factory: Callable[..., Holding],
    ):
        cash = holding_factory(holding_type=HoldingType.CASH)

        with pytest.raises(ValidationError):
            price_service.fetch_price(cash)


class TestCachedPrices:
    """Tests for cache-only reads."""

    def test_nothing_cached(self, price_service: PriceService, holding_factory: Callable[..., Holding]):
        holding = holding_factory()

        assert price_service.get_cached_price(holding) is None
        assert price_service.cached_prices([holding]) == {}

    def test_expired_entry_flagged_stale(
        self,
        price_service: PriceService,
        cache_repo,
        holding_factory: Callable[..., Holding],
    ):
        holding = holding_factory()
        cache_repo.upsert_price(
            PriceCacheEntry(
                symbol="VAS.AX",
                price=Decimal("95.00"),
                currency=Currency.AUD,
                fetched_at=utc_now() - timedelta(hours=1),
                source=PriceSource.STUB,
            )
        )

        cached = price_service.cached_prices([holding])

        assert cached[holding.holding_id].price == Decimal("95.00")
        assert cached[holding.holding_id].is_stale is True


# =============================================================================
# BATCH REFRESH
# =============================================================================


class TestRefreshPrices:
    """Tests for concurrent batch refresh."""

    def test_shared_symbol_fetched_once(
        self,
        price_service: PriceService,
        price_provider,
        holding_factory: Callable[..., Holding],
    ):
        first = holding_factory(name="VAS one")
        second = holding_factory(name="VAS two")

        items = price_service.refresh_prices([first, second])

        assert [item.holding_id for item in items] == [first.holding_id, second.holding_id]
        assert all(item.result is not None for item in items)
        assert price_provider.calls == ["VAS.AX"]

    def test_one_failure_does_not_fail_batch(
        self,
        price_service: PriceService,
        holding_factory: Callable[..., Holding],
    ):
        """
        GIVEN a known symbol, an unknown symbol and a cash holding
        WHEN I refresh all three
        THEN only the known symbol gets a price and the others report errors
        """
        known = holding_factory(symbol="VGS")
        unknown = holding_factory(symbol="ZZZ")
        cash = holding_factory(holding_type=HoldingType.CASH)

        items = {item.holding_id: item for item in price_service.refresh_prices([known, unknown, cash])}

        assert items[known.holding_id].result.price == Decimal("120.00")
        assert items[known.holding_id].error is None
        assert items[unknown.holding_id].result is None
        assert "ZZZ.AX" in items[unknown.holding_id].error
        assert items[cash.holding_id].result is None
        assert items[cash.holding_id].error

    def test_fresh_cache_skips_provider(
        self,
        price_service: PriceService,
        price_provider,
        holding_factory: Callable[..., Holding],
    ):
        holding = holding_factory()
        price_service.fetch_price(holding)

        items = price_service.refresh_prices([holding])

        assert items[0].result.price == Decimal("100.00")
        assert price_provider.calls == ["VAS.AX"]

    def test_failing_refresh_keeps_stale_prices(
        self,
        price_service: PriceService,
        price_provider,
        holding_factory: Callable[..., Holding],
    ):
        holding = holding_factory()
        price_service.fetch_price(holding)
        price_provider.failing = True

        items = price_service.refresh_prices([holding], force_refresh=True)

        assert items[0].result.is_stale is True
        assert items[0].error
