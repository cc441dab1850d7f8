"""Budget repository protocol."""

from datetime import date
from typing import Protocol, Optional

from finboard.domain.models import (
    PaydayConfig,
    BudgetPeriod,
    BudgetSaver,
    BudgetCategory,
    BudgetAllocation,
    BudgetTransaction,
)


class BudgetRepository(Protocol):
    """Interface for pay-cycle budget data."""

    def get_payday_config(self) -> Optional[PaydayConfig]:
        ...

    def save_payday_config(self, config: PaydayConfig) -> PaydayConfig:
        ...

    def get_period(self, period_id: str) -> Optional[BudgetPeriod]:
        ...

    def get_period_by_start(self, start_date: date) -> Optional[BudgetPeriod]:
        ...

    def find_period_containing(self, on_date: date) -> Optional[BudgetPeriod]:
        ...

    def list_periods(self, limit: Optional[int] = None) -> list[BudgetPeriod]:
        ...

    def insert_period_if_absent(self, period: BudgetPeriod) -> BudgetPeriod:
        ...

    def update_period(self, period: BudgetPeriod) -> BudgetPeriod:
        ...

    def list_savers(self, include_inactive: bool = False) -> list[BudgetSaver]:
        ...

    def get_saver_by_key(self, saver_key: str) -> Optional[BudgetSaver]:
        ...

    def create_saver(self, saver: BudgetSaver) -> BudgetSaver:
        ...

    def list_categories(self, include_inactive: bool = False) -> list[BudgetCategory]:
        ...

    def get_category(self, category_id: str) -> Optional[BudgetCategory]:
        ...

    def create_category(self, category: BudgetCategory) -> BudgetCategory:
        ...

    def list_allocations(self, period_id: str) -> list[BudgetAllocation]:
        ...

    def upsert_allocation(self, allocation: BudgetAllocation) -> BudgetAllocation:
        ...

    def create_transaction(self, txn: BudgetTransaction) -> BudgetTransaction:
        ...

    def list_transactions(self, start_date: date, end_date: date) -> list[BudgetTransaction]:
        ...
