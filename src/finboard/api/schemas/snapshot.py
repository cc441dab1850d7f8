"""Pydantic schemas for snapshot and contribution endpoints."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import Field

from finboard.api.schemas.base import ApiModel
from finboard.domain.models.enums import Currency


class SnapshotCreateRequest(ApiModel):
    holding_id: str
    date: dt.date
    balance: Decimal = Field(..., description="Signed balance; debts are negative")
    currency: Optional[Currency] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class SnapshotUpdateRequest(ApiModel):
    date: Optional[dt.date] = None
    balance: Optional[Decimal] = None
    currency: Optional[Currency] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class SnapshotResponse(ApiModel):
    id: str
    holding_id: str
    date: dt.date
    balance: float
    currency: Currency
    notes: Optional[str] = None


class ContributionRequest(ApiModel):
    holding_id: str
    date: dt.date
    employer_contrib: Decimal = Field(default=Decimal("0"), ge=0)
    employee_contrib: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)


class ContributionResponse(ApiModel):
    id: str
    holding_id: str
    date: dt.date
    employer_contrib: float
    employee_contrib: float
    notes: Optional[str] = None
