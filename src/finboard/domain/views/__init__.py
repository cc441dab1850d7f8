"""View models for service outputs."""

from finboard.domain.views.market import (
    Quote,
    PriceResult,
    PriceRefreshItem,
    RateResult,
    RateTable,
    Conversion,
)
from finboard.domain.views.valuation import (
    Lot,
    CostBasisResult,
    HoldingValue,
    AssetTypeBreakdown,
    NetWorthResult,
    HistoryPoint,
    Performer,
    CurrencyExposure,
    SuperPeriodRow,
)
from finboard.domain.views.budget import (
    PeriodBounds,
    PeriodProgress,
    CategorySummary,
    SaverSummary,
    BudgetSummary,
    TrendSaver,
    TrendPeriod,
    CategoryAverage,
    Anomaly,
)
from finboard.domain.views.imports import ImportRowError, ImportSummary

__all__ = [
    "Quote",
    "PriceResult",
    "PriceRefreshItem",
    "RateResult",
    "RateTable",
    "Conversion",
    "Lot",
    "CostBasisResult",
    "HoldingValue",
    "AssetTypeBreakdown",
    "NetWorthResult",
    "HistoryPoint",
    "Performer",
    "CurrencyExposure",
    "SuperPeriodRow",
    "PeriodBounds",
    "PeriodProgress",
    "CategorySummary",
    "SaverSummary",
    "BudgetSummary",
    "TrendSaver",
    "TrendPeriod",
    "CategoryAverage",
    "Anomaly",
    "ImportRowError",
    "ImportSummary",
]
