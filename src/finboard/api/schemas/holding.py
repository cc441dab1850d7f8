"""Pydantic schemas for holding endpoints."""

import datetime as dt
from typing import Optional

from pydantic import Field, field_validator

from finboard.api.schemas.base import ApiModel
from finboard.domain.models.enums import HoldingType, Currency


class HoldingCreateRequest(ApiModel):
    """Request schema for creating a holding."""

    name: str = Field(..., min_length=1, max_length=255)
    type: HoldingType = Field(..., description="stock, etf, crypto, super, cash or debt")
    currency: Currency = Currency.AUD
    symbol: Optional[str] = Field(default=None, max_length=20, description="Required for stock/etf/crypto")
    exchange: Optional[str] = Field(default=None, max_length=20, description="Required for stock/etf")
    is_dormant: bool = False
    is_active: bool = True

    @field_validator("symbol", "exchange")
    @classmethod
    def uppercase(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v and v.strip() else None


class HoldingUpdateRequest(ApiModel):
    """Request schema for updating a holding (partial update)."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    currency: Optional[Currency] = None
    symbol: Optional[str] = Field(default=None, max_length=20)
    exchange: Optional[str] = Field(default=None, max_length=20)
    is_dormant: Optional[bool] = None
    is_active: Optional[bool] = None


class HoldingResponse(ApiModel):
    """Response schema for a single holding."""

    id: str
    name: str
    type: HoldingType
    currency: Currency
    symbol: Optional[str] = None
    exchange: Optional[str] = None
    is_dormant: bool
    is_active: bool
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class LotResponse(ApiModel):
    acquired_on: dt.date
    quantity: float
    unit_cost: float


class QuantityResponse(ApiModel):
    """Derived position for a tradeable holding."""

    holding_id: str
    quantity: float
    cost_basis: float
    average_cost: Optional[float] = None
    realized_gain: float
    dividend_income: float
    method: str
    lots: list[LotResponse] = []
