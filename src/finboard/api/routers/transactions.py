"""Transaction ledger endpoints."""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query

from finboard.api.deps import get_ledger_service
from finboard.api.schemas import (
    TransactionCreateRequest,
    TransactionUpdateRequest,
    TransactionResponse,
    TransactionListResponse,
    as_float,
)
from finboard.domain.models import Transaction, TransactionAction
from finboard.services import LedgerService, TransactionCreate, TransactionUpdate

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _to_response(txn: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=txn.txn_id,
        holding_id=txn.holding_id,
        date=txn.txn_date,
        action=txn.action,
        quantity=as_float(txn.quantity, None),
        unit_price=as_float(txn.unit_price, None),
        fees=as_float(txn.fees),
        currency=txn.currency,
        notes=txn.notes,
        created_at=txn.created_at,
    )


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    holding_id: Optional[list[str]] = Query(None, alias="holdingId"),
    action: Optional[list[TransactionAction]] = Query(None),
    start_date: Optional[dt.date] = Query(None, alias="startDate"),
    end_date: Optional[dt.date] = Query(None, alias="endDate"),
    service: LedgerService = Depends(get_ledger_service),
) -> TransactionListResponse:
    """List live transactions in replay order (date, then insertion)."""
    transactions = service.list_transactions(
        holding_ids=holding_id or None,
        actions=action or None,
        start_date=start_date,
        end_date=end_date,
    )
    return TransactionListResponse(
        items=[_to_response(t) for t in transactions],
        total=len(transactions),
    )


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request: TransactionCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> TransactionResponse:
    """Record a transaction; a sell beyond the quantity held is rejected with 409."""
    txn = service.add_transaction(
        TransactionCreate(
            holding_id=request.holding_id,
            action=request.action,
            quantity=request.quantity,
            unit_price=request.unit_price,
            fees=request.fees,
            txn_date=request.date,
            currency=request.currency,
            notes=request.notes,
        )
    )
    return _to_response(txn)


@router.get("/{txn_id}", response_model=TransactionResponse)
def get_transaction(
    txn_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> TransactionResponse:
    return _to_response(service.get_transaction(txn_id))


@router.patch("/{txn_id}", response_model=TransactionResponse)
def update_transaction(
    txn_id: str,
    request: TransactionUpdateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> TransactionResponse:
    txn = service.edit_transaction(
        txn_id,
        TransactionUpdate(
            txn_date=request.date,
            action=request.action,
            quantity=request.quantity,
            unit_price=request.unit_price,
            fees=request.fees,
            currency=request.currency,
            notes=request.notes,
        ),
    )
    return _to_response(txn)


@router.delete("/{txn_id}", status_code=204)
def delete_transaction(
    txn_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> None:
    """Soft delete a transaction."""
    service.delete_transaction(txn_id)


@router.post("/{txn_id}/restore", response_model=TransactionResponse)
def restore_transaction(
    txn_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> TransactionResponse:
    return _to_response(service.restore_transaction(txn_id))
