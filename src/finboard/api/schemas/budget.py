"""Pydantic schemas for budget endpoints."""

import datetime as dt
from typing import Optional

from pydantic import Field

from finboard.api.schemas.base import ApiModel
from finboard.domain.models.enums import AnomalySeverity, AnomalyType, PaceStatus, SaverType


class PaydayConfigRequest(ApiModel):
    payday_day: int = Field(..., ge=1, le=28)
    adjust_for_weekends: bool = True
    income_source_pattern: Optional[str] = Field(default=None, max_length=200)


class PaydayConfigResponse(ApiModel):
    payday_day: int
    adjust_for_weekends: bool
    income_source_pattern: Optional[str] = None
    next_payday: Optional[dt.date] = None


class PeriodCreateRequest(ApiModel):
    date: dt.date = Field(..., description="Any date inside the pay cycle to create")
    expected_income_cents: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)


class PeriodResponse(ApiModel):
    id: str
    start_date: dt.date
    end_date: dt.date
    expected_income_cents: int
    notes: Optional[str] = None


class SaverCreateRequest(ApiModel):
    saver_key: str = Field(..., min_length=1, max_length=50)
    display_name: str = Field(..., min_length=1, max_length=100)
    saver_type: SaverType = SaverType.SPENDING
    monthly_budget_cents: int = Field(default=0, ge=0)
    emoji: Optional[str] = None
    colour: Optional[str] = None
    sort_order: int = 0


class SaverResponse(ApiModel):
    id: str
    saver_key: str
    display_name: str
    saver_type: SaverType
    monthly_budget_cents: int
    emoji: Optional[str] = None
    colour: Optional[str] = None


class CategoryCreateRequest(ApiModel):
    saver_key: str
    category_key: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    monthly_budget_cents: int = Field(default=0, ge=0)
    is_fixed: bool = False
    is_income: bool = False
    sort_order: int = 0


class CategoryResponse(ApiModel):
    id: str
    saver_id: str
    category_key: str
    name: str
    monthly_budget_cents: int
    is_fixed: bool
    is_income: bool


class BudgetTransactionRequest(ApiModel):
    date: dt.date
    amount_cents: int = Field(..., description="Signed: debits negative, credits positive")
    description: str = ""
    saver_key: Optional[str] = None
    category_key: Optional[str] = None
    is_income: bool = False
    is_transfer: bool = False


class BudgetTransactionResponse(ApiModel):
    id: str
    date: dt.date
    amount_cents: int
    description: str
    saver_key: Optional[str] = None
    category_key: Optional[str] = None
    is_income: bool
    is_transfer: bool


class AllocationRequest(ApiModel):
    period_id: str
    category_id: str
    allocated_cents: int = Field(..., ge=0)


class AllocationResponse(ApiModel):
    id: str
    period_id: str
    category_id: str
    allocated_cents: int


class CategorySummaryResponse(ApiModel):
    category_id: str
    category_key: str
    name: str
    budget_cents: int
    actual_cents: int
    remaining_cents: int
    percent_used: float
    pace_percent: float
    pace_status: PaceStatus
    is_fixed: bool


class SaverSummaryResponse(ApiModel):
    saver_key: str
    display_name: str
    saver_type: SaverType
    budget_cents: int
    actual_cents: int
    percent_used: float
    pace_status: PaceStatus
    emoji: Optional[str] = None
    colour: Optional[str] = None
    categories: list[CategorySummaryResponse]


class IncomeResponse(ApiModel):
    expected_cents: int
    actual_cents: int


class PeriodProgressResponse(ApiModel):
    days_elapsed: int
    days_remaining: int
    total_days: int
    progress_percent: float


class BudgetSummaryResponse(ApiModel):
    period_id: str
    start_date: dt.date
    end_date: dt.date
    income: IncomeResponse
    total_budgeted_cents: int
    total_spent_cents: int
    spending_savers: list[SaverSummaryResponse]
    other_savers: list[SaverSummaryResponse]
    period: PeriodProgressResponse
    savings_rate: Optional[float] = None


class TrendSaverResponse(ApiModel):
    saver_key: str
    display_name: str
    budget_cents: int
    actual_cents: int


class TrendPeriodResponse(ApiModel):
    start_date: dt.date
    end_date: dt.date
    income_cents: int
    spent_cents: int
    budgeted_cents: int
    is_projected: bool
    savers: list[TrendSaverResponse]


class TemplateLineResponse(ApiModel):
    category_key: str
    fixed_cents: Optional[int] = None
    percentage: Optional[float] = None


class TemplateResponse(ApiModel):
    key: str
    name: str
    description: str
    lines: list[TemplateLineResponse]


class ApplyTemplateRequest(ApiModel):
    period_id: str
    template_key: str
    income_cents: Optional[int] = Field(default=None, ge=0)


class AnomalyResponse(ApiModel):
    id: str
    type: AnomalyType
    severity: AnomalySeverity
    saver_key: Optional[str] = None
    category_key: Optional[str] = None
    description: str
    amount_cents: int
    comparison_cents: int
