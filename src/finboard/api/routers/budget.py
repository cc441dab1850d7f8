"""Pay-cycle budget endpoints."""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query

from finboard.api.deps import get_budget_service
from finboard.api.schemas import (
    PaydayConfigRequest,
    PaydayConfigResponse,
    PeriodCreateRequest,
    PeriodResponse,
    SaverCreateRequest,
    SaverResponse,
    CategoryCreateRequest,
    CategoryResponse,
    BudgetTransactionRequest,
    BudgetTransactionResponse,
    AllocationRequest,
    AllocationResponse,
    CategorySummaryResponse,
    SaverSummaryResponse,
    IncomeResponse,
    PeriodProgressResponse,
    BudgetSummaryResponse,
    TrendSaverResponse,
    TrendPeriodResponse,
    TemplateLineResponse,
    TemplateResponse,
    ApplyTemplateRequest,
    AnomalyResponse,
    as_float,
)
from finboard.domain.models import (
    BudgetAllocation,
    BudgetCategory,
    BudgetPeriod,
    BudgetSaver,
    BudgetTransaction,
    PaydayConfig,
)
from finboard.domain.views import SaverSummary
from finboard.services import BudgetService

router = APIRouter(prefix="/budget", tags=["budget"])


def _payday_to_response(config: PaydayConfig, next_payday: Optional[dt.date] = None) -> PaydayConfigResponse:
    return PaydayConfigResponse(
        payday_day=config.payday_day,
        adjust_for_weekends=config.adjust_for_weekends,
        income_source_pattern=config.income_source_pattern,
        next_payday=next_payday,
    )


def _period_to_response(period: BudgetPeriod) -> PeriodResponse:
    return PeriodResponse(
        id=period.period_id,
        start_date=period.start_date,
        end_date=period.end_date,
        expected_income_cents=period.expected_income_cents,
        notes=period.notes,
    )


def _saver_to_response(saver: BudgetSaver) -> SaverResponse:
    return SaverResponse(
        id=saver.saver_id,
        saver_key=saver.saver_key,
        display_name=saver.display_name,
        saver_type=saver.saver_type,
        monthly_budget_cents=saver.monthly_budget_cents,
        emoji=saver.emoji,
        colour=saver.colour,
    )


def _category_to_response(category: BudgetCategory) -> CategoryResponse:
    return CategoryResponse(
        id=category.category_id,
        saver_id=category.saver_id,
        category_key=category.category_key,
        name=category.name,
        monthly_budget_cents=category.monthly_budget_cents,
        is_fixed=category.is_fixed,
        is_income=category.is_income,
    )


def _allocation_to_response(allocation: BudgetAllocation) -> AllocationResponse:
    return AllocationResponse(
        id=allocation.allocation_id,
        period_id=allocation.period_id,
        category_id=allocation.category_id,
        allocated_cents=allocation.allocated_cents,
    )


def _budget_txn_to_response(txn: BudgetTransaction) -> BudgetTransactionResponse:
    return BudgetTransactionResponse(
        id=txn.budget_txn_id,
        date=txn.txn_date,
        amount_cents=txn.amount_cents,
        description=txn.description,
        saver_key=txn.saver_key,
        category_key=txn.category_key,
        is_income=txn.is_income,
        is_transfer=txn.is_transfer,
    )


def _saver_summary_to_response(saver: SaverSummary) -> SaverSummaryResponse:
    return SaverSummaryResponse(
        saver_key=saver.saver_key,
        display_name=saver.display_name,
        saver_type=saver.saver_type,
        budget_cents=saver.budget_cents,
        actual_cents=saver.actual_cents,
        percent_used=as_float(saver.percent_used),
        pace_status=saver.pace_status,
        emoji=saver.emoji,
        colour=saver.colour,
        categories=[
            CategorySummaryResponse(
                category_id=c.category_id,
                category_key=c.category_key,
                name=c.name,
                budget_cents=c.budget_cents,
                actual_cents=c.actual_cents,
                remaining_cents=c.remaining_cents,
                percent_used=as_float(c.percent_used),
                pace_percent=as_float(c.pace_percent),
                pace_status=c.pace_status,
                is_fixed=c.is_fixed,
            )
            for c in saver.categories
        ],
    )


# ---------------------------------------------------------------------------
# Payday and periods
# ---------------------------------------------------------------------------


@router.get("/payday", response_model=PaydayConfigResponse)
def get_payday(service: BudgetService = Depends(get_budget_service)) -> PaydayConfigResponse:
    """Payday rule with the next payday it produces."""
    return _payday_to_response(service.get_payday_config(), service.next_payday())


@router.put("/payday", response_model=PaydayConfigResponse)
def update_payday(
    request: PaydayConfigRequest,
    service: BudgetService = Depends(get_budget_service),
) -> PaydayConfigResponse:
    config = service.update_payday_config(
        payday_day=request.payday_day,
        adjust_for_weekends=request.adjust_for_weekends,
        income_source_pattern=request.income_source_pattern,
    )
    return _payday_to_response(config, service.next_payday())


@router.get("/periods", response_model=list[PeriodResponse])
def list_periods(
    limit: Optional[int] = Query(None, ge=1, le=120),
    service: BudgetService = Depends(get_budget_service),
) -> list[PeriodResponse]:
    """Stored pay-cycle periods, newest first."""
    return [_period_to_response(p) for p in service.list_periods(limit=limit)]


@router.get("/periods/current", response_model=PeriodResponse)
def get_current_period(service: BudgetService = Depends(get_budget_service)) -> PeriodResponse:
    """Period containing today, derived from the payday rule when not yet stored."""
    return _period_to_response(service.get_or_create_current_period())


@router.post("/periods", response_model=PeriodResponse, status_code=201)
def create_period(
    request: PeriodCreateRequest,
    service: BudgetService = Depends(get_budget_service),
) -> PeriodResponse:
    period = service.create_period(
        on_date=request.date,
        expected_income_cents=request.expected_income_cents,
        notes=request.notes,
    )
    return _period_to_response(period)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


@router.get("/summary", response_model=BudgetSummaryResponse)
def get_summary(
    period_id: Optional[str] = Query(None, alias="periodId"),
    service: BudgetService = Depends(get_budget_service),
) -> BudgetSummaryResponse:
    """Budget against actual spend per saver and category for a period (default: current)."""
    summary = service.summary(period_id=period_id)
    return BudgetSummaryResponse(
        period_id=summary.period_id,
        start_date=summary.start_date,
        end_date=summary.end_date,
        income=IncomeResponse(
            expected_cents=summary.expected_income_cents,
            actual_cents=summary.actual_income_cents,
        ),
        total_budgeted_cents=summary.total_budgeted_cents,
        total_spent_cents=summary.total_spent_cents,
        spending_savers=[_saver_summary_to_response(s) for s in summary.spending_savers],
        other_savers=[_saver_summary_to_response(s) for s in summary.other_savers],
        period=PeriodProgressResponse(
            days_elapsed=summary.progress.days_elapsed,
            days_remaining=summary.progress.days_remaining,
            total_days=summary.progress.total_days,
            progress_percent=as_float(summary.progress.progress_percent),
        ),
        savings_rate=as_float(summary.savings_rate, 1),
    )


@router.get("/trends", response_model=list[TrendPeriodResponse])
def get_trends(
    periods: int = Query(6, ge=1, le=24),
    service: BudgetService = Depends(get_budget_service),
) -> list[TrendPeriodResponse]:
    """Income, spend and budget for the trailing pay cycles, oldest first."""
    return [
        TrendPeriodResponse(
            start_date=t.start_date,
            end_date=t.end_date,
            income_cents=t.income_cents,
            spent_cents=t.spent_cents,
            budgeted_cents=t.budgeted_cents,
            is_projected=t.is_projected,
            savers=[
                TrendSaverResponse(
                    saver_key=s.saver_key,
                    display_name=s.display_name,
                    budget_cents=s.budget_cents,
                    actual_cents=s.actual_cents,
                )
                for s in t.savers
            ],
        )
        for t in service.trends(periods=periods)
    ]


@router.get("/anomalies", response_model=list[AnomalyResponse])
def get_anomalies(
    period_id: Optional[str] = Query(None, alias="periodId"),
    service: BudgetService = Depends(get_budget_service),
) -> list[AnomalyResponse]:
    """Unusual spending in a period (default: current), alerts first."""
    return [
        AnomalyResponse(
            id=a.anomaly_id,
            type=a.anomaly_type,
            severity=a.severity,
            saver_key=a.saver_key,
            category_key=a.category_key,
            description=a.description,
            amount_cents=a.amount_cents,
            comparison_cents=a.comparison_cents,
        )
        for a in service.anomalies(period_id=period_id)
    ]


# ---------------------------------------------------------------------------
# Savers, categories, allocations and spend
# ---------------------------------------------------------------------------


@router.get("/savers", response_model=list[SaverResponse])
def list_savers(service: BudgetService = Depends(get_budget_service)) -> list[SaverResponse]:
    return [_saver_to_response(s) for s in service.list_savers()]


@router.post("/savers", response_model=SaverResponse, status_code=201)
def create_saver(
    request: SaverCreateRequest,
    service: BudgetService = Depends(get_budget_service),
) -> SaverResponse:
    saver = service.create_saver(
        saver_key=request.saver_key,
        display_name=request.display_name,
        saver_type=request.saver_type,
        monthly_budget_cents=request.monthly_budget_cents,
        emoji=request.emoji,
        colour=request.colour,
        sort_order=request.sort_order,
    )
    return _saver_to_response(saver)


@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(service: BudgetService = Depends(get_budget_service)) -> list[CategoryResponse]:
    return [_category_to_response(c) for c in service.list_categories()]


@router.post("/categories", response_model=CategoryResponse, status_code=201)
def create_category(
    request: CategoryCreateRequest,
    service: BudgetService = Depends(get_budget_service),
) -> CategoryResponse:
    category = service.create_category(
        saver_key=request.saver_key,
        category_key=request.category_key,
        name=request.name,
        monthly_budget_cents=request.monthly_budget_cents,
        is_fixed=request.is_fixed,
        is_income=request.is_income,
        sort_order=request.sort_order,
    )
    return _category_to_response(category)


@router.put("/allocations", response_model=AllocationResponse)
def set_allocation(
    request: AllocationRequest,
    service: BudgetService = Depends(get_budget_service),
) -> AllocationResponse:
    """Override a category's budget for one period."""
    allocation = service.set_allocation(
        period_id=request.period_id,
        category_id=request.category_id,
        allocated_cents=request.allocated_cents,
    )
    return _allocation_to_response(allocation)


@router.post("/transactions", response_model=BudgetTransactionResponse, status_code=201)
def record_budget_transaction(
    request: BudgetTransactionRequest,
    service: BudgetService = Depends(get_budget_service),
) -> BudgetTransactionResponse:
    """Record a bank-side spend or income line; debits are negative cents."""
    txn = service.record_transaction(
        txn_date=request.date,
        amount_cents=request.amount_cents,
        description=request.description,
        saver_key=request.saver_key,
        category_key=request.category_key,
        is_income=request.is_income,
        is_transfer=request.is_transfer,
    )
    return _budget_txn_to_response(txn)


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


@router.get("/templates", response_model=list[TemplateResponse])
def list_templates(service: BudgetService = Depends(get_budget_service)) -> list[TemplateResponse]:
    return [
        TemplateResponse(
            key=t.key,
            name=t.name,
            description=t.description,
            lines=[
                TemplateLineResponse(
                    category_key=line.category_key,
                    fixed_cents=line.fixed_cents,
                    percentage=as_float(line.percentage, None),
                )
                for line in t.lines
            ],
        )
        for t in service.list_templates()
    ]


@router.post("/templates/apply", response_model=list[AllocationResponse])
def apply_template(
    request: ApplyTemplateRequest,
    service: BudgetService = Depends(get_budget_service),
) -> list[AllocationResponse]:
    """Write a template's amounts as allocations for a period."""
    allocations = service.apply_template_to_period(
        period_id=request.period_id,
        template_key=request.template_key,
        income_cents=request.income_cents,
    )
    return [_allocation_to_response(a) for a in allocations]
