"""View models for budget periods and summaries."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from finboard.domain.models.enums import AnomalySeverity, AnomalyType, PaceStatus, SaverType


@dataclass(frozen=True)
class PeriodBounds:
    """Inclusive pay-cycle range [start, end]; end is the day before next payday."""

    start: date
    end: date

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class PeriodProgress:
    days_elapsed: int
    days_remaining: int
    total_days: int
    progress_percent: Decimal


@dataclass
class CategorySummary:
    category_id: str
    category_key: str
    name: str
    budget_cents: int
    actual_cents: int
    remaining_cents: int
    percent_used: Decimal
    pace_percent: Decimal
    pace_status: PaceStatus
    is_fixed: bool = False


@dataclass
class SaverSummary:
    saver_key: str
    display_name: str
    saver_type: SaverType
    budget_cents: int
    actual_cents: int
    percent_used: Decimal
    pace_status: PaceStatus
    emoji: Optional[str] = None
    colour: Optional[str] = None
    categories: list[CategorySummary] = field(default_factory=list)


@dataclass
class BudgetSummary:
    period_id: str
    start_date: date
    end_date: date
    expected_income_cents: int
    actual_income_cents: int
    total_budgeted_cents: int
    total_spent_cents: int
    progress: PeriodProgress
    spending_savers: list[SaverSummary] = field(default_factory=list)
    other_savers: list[SaverSummary] = field(default_factory=list)
    savings_rate: Optional[Decimal] = None


@dataclass
class TrendSaver:
    saver_key: str
    display_name: str
    budget_cents: int
    actual_cents: int


@dataclass
class TrendPeriod:
    start_date: date
    end_date: date
    income_cents: int
    spent_cents: int
    budgeted_cents: int
    is_projected: bool = False
    savers: list[TrendSaver] = field(default_factory=list)


@dataclass(frozen=True)
class CategoryAverage:
    """Historical spend for one saver/category across prior pay cycles."""

    saver_key: Optional[str]
    category_key: Optional[str]
    avg_transaction_cents: int
    avg_period_total_cents: int


@dataclass
class Anomaly:
    anomaly_id: str
    anomaly_type: AnomalyType
    severity: AnomalySeverity
    saver_key: Optional[str]
    category_key: Optional[str]
    description: str
    amount_cents: int
    comparison_cents: int
