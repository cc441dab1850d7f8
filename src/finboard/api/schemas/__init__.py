"""Pydantic schemas for API request/response."""

from finboard.api.schemas.base import ApiModel, as_float
from finboard.api.schemas.holding import (
    HoldingCreateRequest,
    HoldingUpdateRequest,
    HoldingResponse,
    LotResponse,
    QuantityResponse,
)
from finboard.api.schemas.transaction import (
    TransactionCreateRequest,
    TransactionUpdateRequest,
    TransactionResponse,
    TransactionListResponse,
)
from finboard.api.schemas.snapshot import (
    SnapshotCreateRequest,
    SnapshotUpdateRequest,
    SnapshotResponse,
    ContributionRequest,
    ContributionResponse,
)
from finboard.api.schemas.valuation import (
    HoldingValueResponse,
    BreakdownResponse,
    NetWorthResponse,
    HistoryPointResponse,
    PerformerResponse,
    PerformersResponse,
    CurrencyExposureResponse,
    SuperPeriodResponse,
    PriceResponse,
    PriceRefreshItemResponse,
    ExchangeRateResponse,
)
from finboard.api.schemas.budget import (
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
)
from finboard.api.schemas.imports import ImportRowErrorResponse, ImportSummaryResponse

__all__ = [
    "ApiModel",
    "as_float",
    "HoldingCreateRequest",
    "HoldingUpdateRequest",
    "HoldingResponse",
    "LotResponse",
    "QuantityResponse",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    "TransactionResponse",
    "TransactionListResponse",
    "SnapshotCreateRequest",
    "SnapshotUpdateRequest",
    "SnapshotResponse",
    "ContributionRequest",
    "ContributionResponse",
    "HoldingValueResponse",
    "BreakdownResponse",
    "NetWorthResponse",
    "HistoryPointResponse",
    "PerformerResponse",
    "PerformersResponse",
    "CurrencyExposureResponse",
    "SuperPeriodResponse",
    "PriceResponse",
    "PriceRefreshItemResponse",
    "ExchangeRateResponse",
    "PaydayConfigRequest",
    "PaydayConfigResponse",
    "PeriodCreateRequest",
    "PeriodResponse",
    "SaverCreateRequest",
    "SaverResponse",
    "CategoryCreateRequest",
    "CategoryResponse",
    "BudgetTransactionRequest",
    "BudgetTransactionResponse",
    "AllocationRequest",
    "AllocationResponse",
    "CategorySummaryResponse",
    "SaverSummaryResponse",
    "IncomeResponse",
    "PeriodProgressResponse",
    "BudgetSummaryResponse",
    "TrendSaverResponse",
    "TrendPeriodResponse",
    "TemplateLineResponse",
    "TemplateResponse",
    "ApplyTemplateRequest",
    "AnomalyResponse",
    "ImportRowErrorResponse",
    "ImportSummaryResponse",
]
