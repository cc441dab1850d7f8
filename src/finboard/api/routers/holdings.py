"""Holding management endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from finboard.api.deps import get_ledger_service
from finboard.api.schemas import (
    HoldingCreateRequest,
    HoldingUpdateRequest,
    HoldingResponse,
    LotResponse,
    QuantityResponse,
    as_float,
)
from finboard.domain.models import CostBasisMethod, Holding, HoldingType
from finboard.services import LedgerService, HoldingCreate, HoldingUpdate

router = APIRouter(prefix="/holdings", tags=["holdings"])


def holding_to_response(holding: Holding) -> HoldingResponse:
    return HoldingResponse(
        id=holding.holding_id,
        name=holding.name,
        type=holding.holding_type,
        currency=holding.currency,
        symbol=holding.symbol,
        exchange=holding.exchange,
        is_dormant=holding.is_dormant,
        is_active=holding.is_active,
        created_at=holding.created_at,
        updated_at=holding.updated_at,
    )


@router.get("", response_model=list[HoldingResponse])
def list_holdings(
    type: Optional[list[HoldingType]] = Query(None, description="Filter by holding type (repeatable)"),
    include_inactive: bool = Query(True),
    include_dormant: bool = Query(True),
    service: LedgerService = Depends(get_ledger_service),
) -> list[HoldingResponse]:
    """List holdings, optionally filtered by type."""
    holdings = service.list_holdings(
        include_inactive=include_inactive,
        include_dormant=include_dormant,
        holding_types=type or None,
    )
    return [holding_to_response(h) for h in holdings]


@router.post("", response_model=HoldingResponse, status_code=201)
def create_holding(
    request: HoldingCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> HoldingResponse:
    """Create a new holding."""
    holding = service.create_holding(
        HoldingCreate(
            name=request.name,
            holding_type=request.type,
            currency=request.currency,
            symbol=request.symbol,
            exchange=request.exchange,
            is_dormant=request.is_dormant,
            is_active=request.is_active,
        )
    )
    return holding_to_response(holding)


@router.get("/{holding_id}", response_model=HoldingResponse)
def get_holding(
    holding_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> HoldingResponse:
    return holding_to_response(service.get_holding(holding_id))


@router.patch("/{holding_id}", response_model=HoldingResponse)
def update_holding(
    holding_id: str,
    request: HoldingUpdateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> HoldingResponse:
    """Update a holding. The holding type cannot be changed."""
    holding = service.update_holding(
        holding_id,
        HoldingUpdate(
            name=request.name,
            symbol=request.symbol,
            currency=request.currency,
            exchange=request.exchange,
            is_dormant=request.is_dormant,
            is_active=request.is_active,
        ),
    )
    return holding_to_response(holding)


@router.delete("/{holding_id}", status_code=204)
def delete_holding(
    holding_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> None:
    """Soft delete a holding."""
    service.delete_holding(holding_id)


@router.post("/{holding_id}/restore", response_model=HoldingResponse)
def restore_holding(
    holding_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> HoldingResponse:
    return holding_to_response(service.restore_holding(holding_id))


@router.get("/{holding_id}/quantity", response_model=QuantityResponse)
def get_quantity(
    holding_id: str,
    method: CostBasisMethod = Query(CostBasisMethod.AVERAGE),
    service: LedgerService = Depends(get_ledger_service),
) -> QuantityResponse:
    """Quantity held, cost basis and open lots derived from the ledger."""
    position = service.get_position(holding_id, method)
    return QuantityResponse(
        holding_id=holding_id,
        quantity=as_float(position.quantity, None),
        cost_basis=as_float(position.cost_basis),
        average_cost=as_float(position.average_cost),
        realized_gain=as_float(position.realized_gain),
        dividend_income=as_float(position.dividend_income),
        method=method.value,
        lots=[
            LotResponse(
                acquired_on=lot.acquired_on,
                quantity=as_float(lot.quantity, None),
                unit_cost=as_float(lot.unit_cost, None),
            )
            for lot in position.lots
        ],
    )
