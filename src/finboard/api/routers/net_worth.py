"""Net worth, history and portfolio breakdown endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from finboard.api.deps import get_ledger_service, get_net_worth_service, get_snapshot_resolver
from finboard.api.schemas import (
    HoldingValueResponse,
    BreakdownResponse,
    NetWorthResponse,
    HistoryPointResponse,
    PerformerResponse,
    PerformersResponse,
    CurrencyExposureResponse,
    SuperPeriodResponse,
    as_float,
)
from finboard.config.settings import get_settings
from finboard.domain.models import HoldingType
from finboard.domain.views import AssetTypeBreakdown, HoldingValue, Performer
from finboard.services import LedgerService, NetWorthService, SnapshotResolver

router = APIRouter(tags=["net-worth"])


def _display_currency(currency: Optional[str]) -> str:
    return currency or get_settings().default_display_currency


def _value_to_response(value: HoldingValue) -> HoldingValueResponse:
    return HoldingValueResponse(
        holding_id=value.holding_id,
        name=value.name,
        type=value.holding_type,
        symbol=value.symbol,
        native_currency=value.native_currency,
        native_value=as_float(value.native_value),
        value=as_float(value.value),
        quantity=as_float(value.quantity, None),
        price=as_float(value.price, None),
        snapshot_date=value.snapshot_date,
        is_stale=value.is_stale,
        is_converted=value.is_converted,
        error=value.error,
    )


def _breakdown_to_response(group: AssetTypeBreakdown) -> BreakdownResponse:
    return BreakdownResponse(
        type=group.holding_type,
        total_value=as_float(group.total_value),
        count=group.count,
        holdings=[_value_to_response(v) for v in group.holdings],
    )


def _performer_to_response(performer: Performer) -> PerformerResponse:
    return PerformerResponse(
        holding_id=performer.holding_id,
        name=performer.name,
        symbol=performer.symbol,
        market_value=as_float(performer.market_value),
        cost_basis=as_float(performer.cost_basis),
        gain=as_float(performer.gain),
        gain_percent=as_float(performer.gain_percent),
        currency=performer.currency,
    )


@router.get("/net-worth", response_model=NetWorthResponse)
def get_net_worth(
    currency: Optional[str] = Query(None, description="Display currency (AUD, NZD, USD)"),
    include_dormant: bool = Query(False, alias="includeDormant"),
    refresh: bool = Query(False, description="Refresh stale prices before valuing"),
    service: NetWorthService = Depends(get_net_worth_service),
) -> NetWorthResponse:
    """Net worth across every active holding in one display currency."""
    result = service.calculate(
        display_currency=_display_currency(currency),
        include_dormant=include_dormant,
        refresh_prices=refresh,
    )
    return NetWorthResponse(
        net_worth=as_float(result.net_worth),
        total_assets=as_float(result.total_assets),
        total_debt=as_float(result.total_debt),
        breakdown=[_breakdown_to_response(g) for g in result.breakdown],
        debt_breakdown=[_breakdown_to_response(g) for g in result.debt_breakdown],
        has_stale_data=result.has_stale_data,
        unconverted_count=result.unconverted_count,
        display_currency=result.display_currency,
        rates_used={pair: as_float(rate, None) for pair, rate in result.rates_used.items()},
        calculated_at=result.calculated_at,
    )


@router.get("/net-worth/history", response_model=list[HistoryPointResponse])
def get_net_worth_history(
    months: int = Query(12, ge=1, le=120),
    currency: Optional[str] = Query(None),
    include_dormant: bool = Query(False, alias="includeDormant"),
    service: NetWorthService = Depends(get_net_worth_service),
) -> list[HistoryPointResponse]:
    """Month-end net worth for the trailing months, oldest first."""
    points = service.history(
        months=months,
        display_currency=_display_currency(currency),
        include_dormant=include_dormant,
    )
    return [
        HistoryPointResponse(
            date=p.month_end,
            net_worth=as_float(p.net_worth),
            total_assets=as_float(p.total_assets),
            total_debt=as_float(p.total_debt),
        )
        for p in points
    ]


@router.get("/net-worth/performers", response_model=PerformersResponse)
def get_performers(
    limit: int = Query(5, ge=1, le=50),
    currency: Optional[str] = Query(None),
    service: NetWorthService = Depends(get_net_worth_service),
) -> PerformersResponse:
    gainers, losers = service.performers(limit=limit, display_currency=_display_currency(currency))
    return PerformersResponse(
        gainers=[_performer_to_response(p) for p in gainers],
        losers=[_performer_to_response(p) for p in losers],
    )


@router.get("/currency-exposure", response_model=list[CurrencyExposureResponse])
def get_currency_exposure(
    currency: Optional[str] = Query(None),
    include_dormant: bool = Query(False, alias="includeDormant"),
    service: NetWorthService = Depends(get_net_worth_service),
) -> list[CurrencyExposureResponse]:
    """Share of gross assets held in each native currency."""
    exposure = service.currency_exposure(
        display_currency=_display_currency(currency),
        include_dormant=include_dormant,
    )
    return [
        CurrencyExposureResponse(
            currency=e.currency,
            native_total=as_float(e.native_total),
            converted_total=as_float(e.converted_total),
            percent=as_float(e.percent),
        )
        for e in exposure
    ]


@router.get("/super/breakdown", response_model=list[SuperPeriodResponse])
def get_super_breakdown(
    months: int = Query(12, ge=1, le=120),
    holding_id: Optional[list[str]] = Query(None, alias="holdingId"),
    ledger: LedgerService = Depends(get_ledger_service),
    resolver: SnapshotResolver = Depends(get_snapshot_resolver),
) -> list[SuperPeriodResponse]:
    """Monthly super balance, contributions and derived investment return."""
    if holding_id:
        holding_ids = holding_id
    else:
        holding_ids = [
            h.holding_id
            for h in ledger.list_holdings(include_inactive=False, holding_types=[HoldingType.SUPER])
        ]
    rows = resolver.super_breakdown(holding_ids, months)
    return [
        SuperPeriodResponse(
            month=r.month,
            balance=as_float(r.balance),
            employer_contrib=as_float(r.employer_contrib),
            employee_contrib=as_float(r.employee_contrib),
            investment_return=as_float(r.investment_return),
        )
        for r in rows
    ]
