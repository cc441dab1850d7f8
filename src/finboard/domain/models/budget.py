"""Budget domain models (pay-cycle periods, savers, categories, spend ledger)."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from finboard.domain.models.enums import SaverType


@dataclass
class PaydayConfig:
    """Singleton payday rule that defines budget period boundaries."""

    payday_day: int = 14
    adjust_for_weekends: bool = True
    income_source_pattern: Optional[str] = None
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if not 1 <= self.payday_day <= 28:
            raise ValueError(f"payday_day must be between 1 and 28, got {self.payday_day}")


@dataclass
class BudgetPeriod:
    """Stored pay-cycle period; end_date is the day before the next payday."""

    period_id: str
    start_date: date
    end_date: date
    expected_income_cents: int = 0
    notes: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    deleted_at: Optional[datetime] = field(default=None)

    def contains(self, d: date) -> bool:
        return self.start_date <= d <= self.end_date


@dataclass
class BudgetSaver:
    """Top-level budget bucket with its own monthly allocation."""

    saver_id: str
    saver_key: str
    display_name: str
    saver_type: SaverType = SaverType.SPENDING
    monthly_budget_cents: int = 0
    emoji: Optional[str] = None
    colour: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    deleted_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.saver_type, str):
            self.saver_type = SaverType(self.saver_type)


@dataclass
class BudgetCategory:
    """Sub-bucket under a saver used to classify spend."""

    category_id: str
    saver_id: str
    category_key: str
    name: str
    monthly_budget_cents: int = 0
    is_fixed: bool = False
    is_income: bool = False
    sort_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    deleted_at: Optional[datetime] = field(default=None)


@dataclass
class BudgetAllocation:
    """Per-period override of a category's monthly budget."""

    allocation_id: str
    period_id: str
    category_id: str
    allocated_cents: int
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    deleted_at: Optional[datetime] = field(default=None)


@dataclass
class BudgetTransaction:
    """
    Bank-side spend record feeding budget aggregation.

    amount_cents is signed: debits are negative, credits positive.
    """

    budget_txn_id: str
    txn_date: date
    amount_cents: int
    description: str = ""
    saver_key: Optional[str] = None
    category_key: Optional[str] = None
    is_income: bool = False
    is_transfer: bool = False
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    deleted_at: Optional[datetime] = field(default=None)
