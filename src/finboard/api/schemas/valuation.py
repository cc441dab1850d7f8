"""Pydantic schemas for net worth, price and exchange-rate endpoints."""

import datetime as dt
from typing import Optional

from finboard.api.schemas.base import ApiModel
from finboard.domain.models.enums import HoldingType, Currency


class HoldingValueResponse(ApiModel):
    holding_id: str
    name: str
    type: HoldingType
    symbol: Optional[str] = None
    native_currency: Currency
    native_value: float
    value: float
    quantity: Optional[float] = None
    price: Optional[float] = None
    snapshot_date: Optional[dt.date] = None
    is_stale: bool = False
    is_converted: bool = True
    error: Optional[str] = None


class BreakdownResponse(ApiModel):
    type: HoldingType
    total_value: float
    count: int
    holdings: list[HoldingValueResponse]


class NetWorthResponse(ApiModel):
    """Net worth in the requested display currency."""

    net_worth: float
    total_assets: float
    total_debt: float
    breakdown: list[BreakdownResponse]
    debt_breakdown: list[BreakdownResponse]
    has_stale_data: bool
    unconverted_count: int
    display_currency: Currency
    rates_used: dict[str, float]
    calculated_at: dt.datetime


class HistoryPointResponse(ApiModel):
    date: dt.date
    net_worth: float
    total_assets: float
    total_debt: float


class PerformerResponse(ApiModel):
    holding_id: str
    name: str
    symbol: str
    market_value: float
    cost_basis: float
    gain: float
    gain_percent: Optional[float] = None
    currency: Currency


class PerformersResponse(ApiModel):
    gainers: list[PerformerResponse]
    losers: list[PerformerResponse]


class CurrencyExposureResponse(ApiModel):
    currency: Currency
    native_total: float
    converted_total: float
    percent: float


class SuperPeriodResponse(ApiModel):
    month: dt.date
    balance: Optional[float] = None
    employer_contrib: float
    employee_contrib: float
    investment_return: Optional[float] = None


class PriceResponse(ApiModel):
    symbol: str
    price: float
    currency: Currency
    change_percent: Optional[float] = None
    change_absolute: Optional[float] = None
    fetched_at: dt.datetime
    source: str
    is_stale: bool
    error: Optional[str] = None


class PriceRefreshItemResponse(ApiModel):
    holding_id: str
    symbol: str
    price: Optional[PriceResponse] = None
    error: Optional[str] = None


class ExchangeRateResponse(ApiModel):
    from_currency: Currency
    to_currency: Currency
    rate: Optional[float] = None
    fetched_at: Optional[dt.datetime] = None
    is_stale: bool = False
    error: Optional[str] = None
