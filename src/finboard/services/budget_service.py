"""Budget service: pay-cycle periods, allocations, summaries and trends."""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from finboard.core.exceptions import ValidationError, NotFoundError, ConflictError
from finboard.core.timezone import today_local, utc_now
from finboard.domain.models import (
    PaydayConfig,
    BudgetPeriod,
    BudgetSaver,
    BudgetCategory,
    BudgetAllocation,
    BudgetTransaction,
    SaverType,
)
from finboard.domain.views import (
    PeriodBounds,
    PeriodProgress,
    CategorySummary,
    SaverSummary,
    BudgetSummary,
    TrendSaver,
    TrendPeriod,
    Anomaly,
)
from finboard.repositories.protocols import BudgetRepository
from finboard.services import payday
from finboard.services.budget_anomalies import category_averages, detect_anomalies
from finboard.services.budget_templates import BUDGET_TEMPLATES, BudgetTemplate, get_template, apply_template

logger = logging.getLogger(__name__)

MAX_TREND_PERIODS = 24
ANOMALY_HISTORY_PERIODS = 6


@dataclass
class _PeriodTotals:
    income_cents: int
    spent_cents: int
    budgeted_cents: int
    spending_savers: list[SaverSummary]
    other_savers: list[SaverSummary]


class BudgetService:
    """
    Service for the pay-cycle budget.

    Periods are derived from the payday rule on demand and stored read-through
    keyed by start date, so no period has to be created up front.
    """

    def __init__(
        self,
        budget_repo: BudgetRepository,
        default_payday_day: int = 14,
        default_adjust_for_weekends: bool = True,
        default_expected_income_cents: int = 0,
        near_pace_margin: Decimal = payday.DEFAULT_NEAR_MARGIN,
    ):
        self._repo = budget_repo
        self._default_payday_day = default_payday_day
        self._default_adjust = default_adjust_for_weekends
        self._default_income = default_expected_income_cents
        self._near_margin = near_pace_margin

    # ------------------------------------------------------------------
    # Payday config
    # ------------------------------------------------------------------

    def get_payday_config(self) -> PaydayConfig:
        config = self._repo.get_payday_config()
        if config is None:
            return PaydayConfig(payday_day=self._default_payday_day, adjust_for_weekends=self._default_adjust)
        return config

    def update_payday_config(
        self,
        payday_day: int,
        adjust_for_weekends: bool = True,
        income_source_pattern: Optional[str] = None,
    ) -> PaydayConfig:
        if not 1 <= payday_day <= 28:
            raise ValidationError("Payday must be between 1 and 28", field="payday_day")
        pattern = income_source_pattern.strip() if income_source_pattern else None
        return self._repo.save_payday_config(
            PaydayConfig(
                payday_day=payday_day,
                adjust_for_weekends=adjust_for_weekends,
                income_source_pattern=pattern or None,
            )
        )

    def next_payday(self, today: Optional[date] = None) -> date:
        return payday.next_payday(today or today_local(), self.get_payday_config())

    # ------------------------------------------------------------------
    # Periods
    # ------------------------------------------------------------------

    def get_or_create_current_period(self, today: Optional[date] = None) -> BudgetPeriod:
        """Stored period containing today, else one derived from the payday rule and inserted."""
        today = today or today_local()
        stored = self._repo.find_period_containing(today)
        if stored:
            return stored

        bounds = payday.resolve_period(today, self.get_payday_config())
        period = self._repo.insert_period_if_absent(
            BudgetPeriod(
                period_id=str(uuid.uuid4()),
                start_date=bounds.start,
                end_date=bounds.end,
                expected_income_cents=self._default_income,
                created_at=utc_now(),
            )
        )
        logger.info("Created budget period %s to %s", period.start_date, period.end_date)
        return period

    def create_period(
        self,
        on_date: date,
        expected_income_cents: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> BudgetPeriod:
        """Store the pay cycle containing on_date; an existing period for that start is a conflict."""
        if expected_income_cents is not None and expected_income_cents < 0:
            raise ValidationError("Expected income cannot be negative", field="expected_income_cents")
        bounds = payday.resolve_period(on_date, self.get_payday_config())
        if self._repo.get_period_by_start(bounds.start):
            raise ConflictError(f"Budget period starting {bounds.start} already exists", field="start_date")
        return self._repo.insert_period_if_absent(
            BudgetPeriod(
                period_id=str(uuid.uuid4()),
                start_date=bounds.start,
                end_date=bounds.end,
                expected_income_cents=(
                    self._default_income if expected_income_cents is None else expected_income_cents
                ),
                notes=notes,
                created_at=utc_now(),
            )
        )

    def get_period(self, period_id: str) -> BudgetPeriod:
        period = self._repo.get_period(period_id)
        if not period:
            raise NotFoundError("Budget period", period_id)
        return period

    def list_periods(self, limit: Optional[int] = None) -> list[BudgetPeriod]:
        """Stored periods, newest first."""
        return self._repo.list_periods(limit=limit)

    # ------------------------------------------------------------------
    # Savers, categories, allocations, spend ledger
    # ------------------------------------------------------------------

    def list_savers(self) -> list[BudgetSaver]:
        return self._repo.list_savers()

    def list_categories(self) -> list[BudgetCategory]:
        return self._repo.list_categories()

    def create_saver(
        self,
        saver_key: str,
        display_name: str,
        saver_type: SaverType = SaverType.SPENDING,
        monthly_budget_cents: int = 0,
        emoji: Optional[str] = None,
        colour: Optional[str] = None,
        sort_order: int = 0,
    ) -> BudgetSaver:
        key = (saver_key or "").strip().lower()
        if not key:
            raise ValidationError("Saver key is required", field="saver_key")
        if monthly_budget_cents < 0:
            raise ValidationError("Monthly budget cannot be negative", field="monthly_budget_cents")
        if self._repo.get_saver_by_key(key):
            raise ConflictError(f"Saver already exists: {key}", field="saver_key")
        return self._repo.create_saver(
            BudgetSaver(
                saver_id=str(uuid.uuid4()),
                saver_key=key,
                display_name=display_name or key,
                saver_type=SaverType(saver_type),
                monthly_budget_cents=monthly_budget_cents,
                emoji=emoji,
                colour=colour,
                sort_order=sort_order,
                created_at=utc_now(),
            )
        )

    def create_category(
        self,
        saver_key: str,
        category_key: str,
        name: str,
        monthly_budget_cents: int = 0,
        is_fixed: bool = False,
        is_income: bool = False,
        sort_order: int = 0,
    ) -> BudgetCategory:
        saver = self._repo.get_saver_by_key((saver_key or "").strip().lower())
        if not saver:
            raise NotFoundError("Saver", saver_key)
        key = (category_key or "").strip().lower()
        if not key:
            raise ValidationError("Category key is required", field="category_key")
        if monthly_budget_cents < 0:
            raise ValidationError("Monthly budget cannot be negative", field="monthly_budget_cents")
        if any(c.saver_id == saver.saver_id and c.category_key == key for c in self._repo.list_categories(True)):
            raise ConflictError(f"Category already exists: {saver.saver_key}/{key}", field="category_key")
        return self._repo.create_category(
            BudgetCategory(
                category_id=str(uuid.uuid4()),
                saver_id=saver.saver_id,
                category_key=key,
                name=name or key,
                monthly_budget_cents=monthly_budget_cents,
                is_fixed=is_fixed,
                is_income=is_income,
                sort_order=sort_order,
                created_at=utc_now(),
            )
        )

    def set_allocation(self, period_id: str, category_id: str, allocated_cents: int) -> BudgetAllocation:
        """Override a category's budget for one period."""
        if allocated_cents < 0:
            raise ValidationError("Allocation cannot be negative", field="allocated_cents")
        self.get_period(period_id)
        if not self._repo.get_category(category_id):
            raise NotFoundError("Category", category_id)
        return self._repo.upsert_allocation(
            BudgetAllocation(
                allocation_id=str(uuid.uuid4()),
                period_id=period_id,
                category_id=category_id,
                allocated_cents=allocated_cents,
                created_at=utc_now(),
            )
        )

    def record_transaction(
        self,
        txn_date: date,
        amount_cents: int,
        description: str = "",
        saver_key: Optional[str] = None,
        category_key: Optional[str] = None,
        is_income: bool = False,
        is_transfer: bool = False,
    ) -> BudgetTransaction:
        """Add a bank-side spend record; debits are negative cents."""
        return self._repo.create_transaction(
            BudgetTransaction(
                budget_txn_id=str(uuid.uuid4()),
                txn_date=txn_date,
                amount_cents=amount_cents,
                description=description or "",
                saver_key=saver_key.strip().lower() if saver_key else None,
                category_key=category_key.strip().lower() if category_key else None,
                is_income=is_income,
                is_transfer=is_transfer,
                created_at=utc_now(),
            )
        )

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def list_templates(self) -> tuple[BudgetTemplate, ...]:
        return BUDGET_TEMPLATES

    def apply_template_to_period(
        self,
        period_id: str,
        template_key: str,
        income_cents: Optional[int] = None,
    ) -> list[BudgetAllocation]:
        """Write a template's resolved amounts as allocations for a period."""
        period = self.get_period(period_id)
        template = get_template(template_key)
        amounts = apply_template(template, period.expected_income_cents if income_cents is None else income_cents)

        categories = {c.category_key: c for c in self._repo.list_categories() if not c.is_income}
        written = []
        for category_key, cents in amounts.items():
            category = categories.get(category_key)
            if category is None:
                logger.warning("Template %s names unknown category %s; skipped", template.key, category_key)
                continue
            written.append(self.set_allocation(period.period_id, category.category_id, cents))
        return written

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def summary(self, period_id: Optional[str] = None, today: Optional[date] = None) -> BudgetSummary:
        """Budget vs actual per saver and category for a period (default: current)."""
        today = today or today_local()
        period = self.get_period(period_id) if period_id else self.get_or_create_current_period(today)
        bounds = PeriodBounds(start=period.start_date, end=period.end_date)
        progress = payday.period_progress(bounds, today)
        totals = self._aggregate(bounds, period, progress)

        savings_rate = None
        if totals.income_cents > 0:
            savings_rate = (
                Decimal(totals.income_cents - totals.spent_cents) / Decimal(totals.income_cents) * 100
            ).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)

        return BudgetSummary(
            period_id=period.period_id,
            start_date=period.start_date,
            end_date=period.end_date,
            expected_income_cents=period.expected_income_cents,
            actual_income_cents=totals.income_cents,
            total_budgeted_cents=totals.budgeted_cents,
            total_spent_cents=totals.spent_cents,
            progress=progress,
            spending_savers=totals.spending_savers,
            other_savers=totals.other_savers,
            savings_rate=savings_rate,
        )

    def trends(self, periods: int = 6, today: Optional[date] = None) -> list[TrendPeriod]:
        """
        Aggregates for the trailing N pay cycles, oldest first.

        Cycles come from the payday rule; stored periods supply allocation
        overrides where they exist. The cycle containing today is flagged
        is_projected since it has not settled yet.
        """
        today = today or today_local()
        count = max(1, min(periods, MAX_TREND_PERIODS))
        config = self.get_payday_config()

        cycles = [payday.resolve_period(today, config)]
        while len(cycles) < count:
            cycles.append(payday.previous_period(cycles[-1], config))
        cycles.reverse()

        results = []
        for bounds in cycles:
            stored = self._repo.get_period_by_start(bounds.start)
            totals = self._aggregate(bounds, stored, payday.period_progress(bounds, today))
            results.append(
                TrendPeriod(
                    start_date=bounds.start,
                    end_date=bounds.end,
                    income_cents=totals.income_cents,
                    spent_cents=totals.spent_cents,
                    budgeted_cents=totals.budgeted_cents,
                    is_projected=bounds.contains(today),
                    savers=[
                        TrendSaver(
                            saver_key=s.saver_key,
                            display_name=s.display_name,
                            budget_cents=s.budget_cents,
                            actual_cents=s.actual_cents,
                        )
                        for s in totals.spending_savers
                    ],
                )
            )
        return results

    def anomalies(self, period_id: Optional[str] = None, today: Optional[date] = None) -> list[Anomaly]:
        """
        Unusual spending in a period (default: current).

        Averages come from the up to six pay cycles before the period, derived
        from the payday rule; budgets honour the period's allocation overrides.
        """
        today = today or today_local()
        period = self.get_period(period_id) if period_id else self.get_or_create_current_period(today)
        bounds = PeriodBounds(start=period.start_date, end=period.end_date)
        config = self.get_payday_config()

        history = []
        prior = bounds
        for _ in range(ANOMALY_HISTORY_PERIODS):
            prior = payday.previous_period(prior, config)
            history.append(self._repo.list_transactions(prior.start, prior.end))
        # Cycles before the first recorded spend carry no history
        while history and not history[-1]:
            history.pop()

        savers = {s.saver_id: s.saver_key for s in self._repo.list_savers()}
        overrides = {a.category_id: a.allocated_cents for a in self._repo.list_allocations(period.period_id)}
        budgets = {
            (savers[c.saver_id], c.category_key): overrides.get(c.category_id, c.monthly_budget_cents)
            for c in self._repo.list_categories()
            if not c.is_income and c.saver_id in savers
        }

        current = [t for t in self._repo.list_transactions(bounds.start, bounds.end) if not t.is_transfer]
        found = detect_anomalies(
            current,
            category_averages(history),
            budgets,
            payday.period_progress(bounds, today),
        )
        if found:
            logger.info("Found %d budget anomalies in period %s", len(found), period.period_id)
        return found

    def _aggregate(
        self,
        bounds: PeriodBounds,
        period: Optional[BudgetPeriod],
        progress: PeriodProgress,
    ) -> _PeriodTotals:
        config = self.get_payday_config()
        savers = self._repo.list_savers()
        categories = self._repo.list_categories()
        overrides = (
            {a.category_id: a.allocated_cents for a in self._repo.list_allocations(period.period_id)}
            if period else {}
        )
        income_keys = {c.category_key for c in categories if c.is_income}
        pattern = (config.income_source_pattern or "").lower()

        income_cents = 0
        spend_by_category: dict[tuple[Optional[str], Optional[str]], int] = defaultdict(int)
        spend_by_saver: dict[Optional[str], int] = defaultdict(int)
        for txn in self._repo.list_transactions(bounds.start, bounds.end):
            if txn.is_transfer:
                continue
            is_income = (
                txn.is_income
                or (txn.category_key is not None and txn.category_key in income_keys)
                or (bool(pattern) and pattern in (txn.description or "").lower())
            )
            if is_income:
                income_cents += txn.amount_cents
                continue
            # Debits are negative; refunds reduce spend
            spend_by_category[(txn.saver_key, txn.category_key)] -= txn.amount_cents
            spend_by_saver[txn.saver_key] -= txn.amount_cents

        categories_by_saver: dict[str, list[BudgetCategory]] = defaultdict(list)
        for category in categories:
            if not category.is_income:
                categories_by_saver[category.saver_id].append(category)

        spending: list[SaverSummary] = []
        other: list[SaverSummary] = []
        for saver in savers:
            category_rows = [
                self._category_summary(category, saver, overrides, spend_by_category, progress)
                for category in categories_by_saver.get(saver.saver_id, [])
            ]
            budget = sum(c.budget_cents for c in category_rows) if category_rows else saver.monthly_budget_cents
            actual = spend_by_saver.get(saver.saver_key, 0)
            summary = SaverSummary(
                saver_key=saver.saver_key,
                display_name=saver.display_name,
                saver_type=saver.saver_type,
                budget_cents=budget,
                actual_cents=actual,
                percent_used=payday.percent_used(actual, budget),
                pace_status=payday.classify_pace(actual, budget, progress.progress_percent, self._near_margin),
                emoji=saver.emoji,
                colour=saver.colour,
                categories=category_rows,
            )
            (spending if saver.saver_type == SaverType.SPENDING else other).append(summary)

        non_spending_keys = {s.saver_key for s in other}
        spent = sum(cents for key, cents in spend_by_saver.items() if key not in non_spending_keys)
        return _PeriodTotals(
            income_cents=income_cents,
            spent_cents=spent,
            budgeted_cents=sum(s.budget_cents for s in spending),
            spending_savers=spending,
            other_savers=other,
        )

    def _category_summary(
        self,
        category: BudgetCategory,
        saver: BudgetSaver,
        overrides: dict[str, int],
        spend: dict[tuple[Optional[str], Optional[str]], int],
        progress: PeriodProgress,
    ) -> CategorySummary:
        budget = overrides.get(category.category_id, category.monthly_budget_cents)
        actual = spend.get((saver.saver_key, category.category_key), 0)
        used = payday.percent_used(actual, budget)
        return CategorySummary(
            category_id=category.category_id,
            category_key=category.category_key,
            name=category.name,
            budget_cents=budget,
            actual_cents=actual,
            remaining_cents=budget - actual,
            percent_used=used,
            pace_percent=used,
            pace_status=payday.classify_pace(
                actual, budget, progress.progress_percent, self._near_margin, is_fixed=category.is_fixed
            ),
            is_fixed=category.is_fixed,
        )
