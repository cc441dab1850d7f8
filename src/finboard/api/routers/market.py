"""Price and exchange-rate endpoints."""

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Query

from finboard.api.deps import get_currency_service, get_ledger_service, get_price_service
from finboard.api.schemas import (
    ExchangeRateResponse,
    PriceRefreshItemResponse,
    PriceResponse,
    as_float,
)
from finboard.domain.models import TRADEABLE_TYPES
from finboard.domain.views import PriceResult, RateResult
from finboard.services import CurrencyService, LedgerService, PriceService
from finboard.services.currency import format_money

router = APIRouter(tags=["market"])


def _price_to_response(price: PriceResult) -> PriceResponse:
    return PriceResponse(
        symbol=price.symbol,
        price=as_float(price.price, None),
        currency=price.currency,
        change_percent=as_float(price.change_percent),
        change_absolute=as_float(price.change_absolute, None),
        fetched_at=price.fetched_at,
        source=price.source.value,
        is_stale=price.is_stale,
        error=price.error,
    )


def _rate_to_response(rate: RateResult) -> ExchangeRateResponse:
    return ExchangeRateResponse(
        from_currency=rate.from_currency,
        to_currency=rate.to_currency,
        rate=None if rate.error and rate.fetched_at is None else as_float(rate.rate, None),
        fetched_at=rate.fetched_at,
        is_stale=rate.is_stale,
        error=rate.error,
    )


@router.post("/prices/refresh", response_model=list[PriceRefreshItemResponse])
def refresh_prices(
    force: bool = Query(False, description="Bypass the cache TTL"),
    ledger: LedgerService = Depends(get_ledger_service),
    prices: PriceService = Depends(get_price_service),
) -> list[PriceRefreshItemResponse]:
    """Refresh prices for every active tradeable holding; failures are reported per holding."""
    holdings = ledger.list_holdings(include_inactive=False, holding_types=sorted(TRADEABLE_TYPES))
    items = prices.refresh_prices(holdings, force_refresh=force)
    return [
        PriceRefreshItemResponse(
            holding_id=item.holding_id,
            symbol=item.symbol,
            price=_price_to_response(item.result) if item.result else None,
            error=item.error,
        )
        for item in items
    ]


@router.get("/prices/{holding_id}", response_model=PriceResponse)
def get_price(
    holding_id: str,
    refresh: bool = Query(False),
    ledger: LedgerService = Depends(get_ledger_service),
    prices: PriceService = Depends(get_price_service),
) -> PriceResponse:
    """Price for one holding, served from cache while fresh."""
    holding = ledger.get_holding(holding_id)
    return _price_to_response(prices.fetch_price(holding, force_refresh=refresh))


@router.get("/exchange-rates", response_model=list[ExchangeRateResponse])
def list_exchange_rates(
    refresh: bool = Query(False),
    service: CurrencyService = Depends(get_currency_service),
) -> list[ExchangeRateResponse]:
    """Rates for every supported currency pair."""
    return [_rate_to_response(r) for r in service.list_rates(force_refresh=refresh)]


@router.get("/exchange-rates/convert")
def convert_amount(
    amount: Decimal = Query(...),
    from_currency: str = Query(..., alias="from"),
    to_currency: str = Query(..., alias="to"),
    service: CurrencyService = Depends(get_currency_service),
) -> dict[str, Any]:
    """Convert an amount; when no rate is available the amount comes back unconverted."""
    conversion, table = service.convert(amount, from_currency, to_currency)
    return {
        "amount": as_float(conversion.amount),
        "currency": conversion.currency.value,
        "rate": as_float(conversion.rate, None),
        "isConverted": conversion.is_converted,
        "isStale": table.has_stale,
        "formatted": format_money(conversion.amount, conversion.currency),
    }
