"""Pydantic schemas for transaction endpoints."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import Field

from finboard.api.schemas.base import ApiModel
from finboard.domain.models.enums import TransactionAction, Currency


class TransactionCreateRequest(ApiModel):
    """Request schema for creating a transaction."""

    holding_id: str = Field(..., description="Holding ID")
    date: Optional[dt.date] = Field(default=None, description="Trade date; defaults to today")
    action: TransactionAction
    quantity: Decimal = Field(..., gt=0, description="Units, or the split ratio for SPLIT")
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    currency: Optional[Currency] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class TransactionUpdateRequest(ApiModel):
    """Request schema for updating a transaction (partial update)."""

    date: Optional[dt.date] = None
    action: Optional[TransactionAction] = None
    quantity: Optional[Decimal] = Field(default=None, gt=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    fees: Optional[Decimal] = Field(default=None, ge=0)
    currency: Optional[Currency] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class TransactionResponse(ApiModel):
    """Response schema for a single transaction."""

    id: str
    holding_id: str
    date: dt.date
    action: TransactionAction
    quantity: float
    unit_price: float
    fees: float
    currency: Currency
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class TransactionListResponse(ApiModel):
    items: list[TransactionResponse]
    total: int
