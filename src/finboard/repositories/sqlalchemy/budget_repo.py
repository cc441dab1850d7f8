"""SQLAlchemy implementation of BudgetRepository."""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finboard.domain.models import (
    PaydayConfig,
    BudgetPeriod,
    BudgetSaver,
    BudgetCategory,
    BudgetAllocation,
    BudgetTransaction,
)
from finboard.repositories.sqlalchemy.filters import active
from finboard.repositories.sqlalchemy.orm_models import (
    PaydayConfigORM,
    BudgetPeriodORM,
    BudgetSaverORM,
    BudgetCategoryORM,
    BudgetAllocationORM,
    BudgetTransactionORM,
)

_PAYDAY_CONFIG_ID = 1


class SqlAlchemyBudgetRepository:
    """SQLAlchemy-backed repository for pay-cycle budgeting data."""

    def __init__(self, db: Session):
        self._db = db

    # Payday config (singleton row)

    def get_payday_config(self) -> Optional[PaydayConfig]:
        orm_config = self._db.get(PaydayConfigORM, _PAYDAY_CONFIG_ID)
        if not orm_config:
            return None
        return PaydayConfig(
            payday_day=orm_config.payday_day,
            adjust_for_weekends=orm_config.adjust_for_weekends,
            income_source_pattern=orm_config.income_source_pattern,
            updated_at=orm_config.updated_at,
        )

    def save_payday_config(self, config: PaydayConfig) -> PaydayConfig:
        orm_config = self._db.get(PaydayConfigORM, _PAYDAY_CONFIG_ID)
        if orm_config is None:
            orm_config = PaydayConfigORM(config_id=_PAYDAY_CONFIG_ID)
            self._db.add(orm_config)
        orm_config.payday_day = config.payday_day
        orm_config.adjust_for_weekends = config.adjust_for_weekends
        orm_config.income_source_pattern = config.income_source_pattern
        orm_config.updated_at = datetime.utcnow()
        self._db.commit()
        return self.get_payday_config()

    # Periods

    def get_period(self, period_id: str) -> Optional[BudgetPeriod]:
        orm_period = (
            self._db.query(BudgetPeriodORM)
            .filter(BudgetPeriodORM.period_id == period_id, active(BudgetPeriodORM))
            .first()
        )
        return self._period_to_domain(orm_period) if orm_period else None

    def get_period_by_start(self, start_date: date) -> Optional[BudgetPeriod]:
        orm_period = (
            self._db.query(BudgetPeriodORM)
            .filter(BudgetPeriodORM.start_date == start_date, active(BudgetPeriodORM))
            .first()
        )
        return self._period_to_domain(orm_period) if orm_period else None

    def find_period_containing(self, on_date: date) -> Optional[BudgetPeriod]:
        orm_period = (
            self._db.query(BudgetPeriodORM)
            .filter(
                and_(
                    BudgetPeriodORM.start_date <= on_date,
                    BudgetPeriodORM.end_date >= on_date,
                    active(BudgetPeriodORM),
                )
            )
            .order_by(BudgetPeriodORM.start_date.desc())
            .first()
        )
        return self._period_to_domain(orm_period) if orm_period else None

    def list_periods(self, limit: Optional[int] = None) -> list[BudgetPeriod]:
        """List stored periods, newest first."""
        query = (
            self._db.query(BudgetPeriodORM)
            .filter(active(BudgetPeriodORM))
            .order_by(BudgetPeriodORM.start_date.desc())
        )
        if limit:
            query = query.limit(limit)
        return [self._period_to_domain(p) for p in query.all()]

    def insert_period_if_absent(self, period: BudgetPeriod) -> BudgetPeriod:
        """Insert a period keyed by start date; an existing row for that start wins."""
        orm_period = BudgetPeriodORM(
            period_id=period.period_id,
            start_date=period.start_date,
            end_date=period.end_date,
            expected_income_cents=period.expected_income_cents,
            notes=period.notes,
            created_at=period.created_at or datetime.utcnow(),
        )
        self._db.add(orm_period)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
        existing = (
            self._db.query(BudgetPeriodORM)
            .filter(BudgetPeriodORM.start_date == period.start_date)
            .first()
        )
        return self._period_to_domain(existing)

    def update_period(self, period: BudgetPeriod) -> BudgetPeriod:
        orm_period = self._db.query(BudgetPeriodORM).filter(
            BudgetPeriodORM.period_id == period.period_id
        ).first()
        if not orm_period:
            raise ValueError(f"Budget period not found: {period.period_id}")
        orm_period.end_date = period.end_date
        orm_period.expected_income_cents = period.expected_income_cents
        orm_period.notes = period.notes
        orm_period.updated_at = datetime.utcnow()
        self._db.commit()
        self._db.refresh(orm_period)
        return self._period_to_domain(orm_period)

    # Savers and categories

    def list_savers(self, include_inactive: bool = False) -> list[BudgetSaver]:
        query = self._db.query(BudgetSaverORM).filter(active(BudgetSaverORM))
        if not include_inactive:
            query = query.filter(BudgetSaverORM.is_active == True)  # noqa: E712
        query = query.order_by(BudgetSaverORM.sort_order, BudgetSaverORM.saver_key)
        return [self._saver_to_domain(s) for s in query.all()]

    def get_saver_by_key(self, saver_key: str) -> Optional[BudgetSaver]:
        orm_saver = (
            self._db.query(BudgetSaverORM)
            .filter(BudgetSaverORM.saver_key == saver_key, active(BudgetSaverORM))
            .first()
        )
        return self._saver_to_domain(orm_saver) if orm_saver else None

    def create_saver(self, saver: BudgetSaver) -> BudgetSaver:
        orm_saver = BudgetSaverORM(
            saver_id=saver.saver_id,
            saver_key=saver.saver_key,
            display_name=saver.display_name,
            saver_type=saver.saver_type,
            monthly_budget_cents=saver.monthly_budget_cents,
            emoji=saver.emoji,
            colour=saver.colour,
            sort_order=saver.sort_order,
            is_active=saver.is_active,
            created_at=saver.created_at or datetime.utcnow(),
        )
        self._db.add(orm_saver)
        self._db.commit()
        self._db.refresh(orm_saver)
        return self._saver_to_domain(orm_saver)

    def list_categories(self, include_inactive: bool = False) -> list[BudgetCategory]:
        query = self._db.query(BudgetCategoryORM).filter(active(BudgetCategoryORM))
        if not include_inactive:
            query = query.filter(BudgetCategoryORM.is_active == True)  # noqa: E712
        query = query.order_by(BudgetCategoryORM.sort_order, BudgetCategoryORM.category_key)
        return [self._category_to_domain(c) for c in query.all()]

    def get_category(self, category_id: str) -> Optional[BudgetCategory]:
        orm_category = (
            self._db.query(BudgetCategoryORM)
            .filter(BudgetCategoryORM.category_id == category_id, active(BudgetCategoryORM))
            .first()
        )
        return self._category_to_domain(orm_category) if orm_category else None

    def create_category(self, category: BudgetCategory) -> BudgetCategory:
        orm_category = BudgetCategoryORM(
            category_id=category.category_id,
            saver_id=category.saver_id,
            category_key=category.category_key,
            name=category.name,
            monthly_budget_cents=category.monthly_budget_cents,
            is_fixed=category.is_fixed,
            is_income=category.is_income,
            sort_order=category.sort_order,
            is_active=category.is_active,
            created_at=category.created_at or datetime.utcnow(),
        )
        self._db.add(orm_category)
        self._db.commit()
        self._db.refresh(orm_category)
        return self._category_to_domain(orm_category)

    # Allocations

    def list_allocations(self, period_id: str) -> list[BudgetAllocation]:
        orm_allocs = (
            self._db.query(BudgetAllocationORM)
            .filter(BudgetAllocationORM.period_id == period_id, active(BudgetAllocationORM))
            .all()
        )
        return [self._allocation_to_domain(a) for a in orm_allocs]

    def upsert_allocation(self, allocation: BudgetAllocation) -> BudgetAllocation:
        """Insert or update the allocation for (period, category)."""
        orm_alloc = (
            self._db.query(BudgetAllocationORM)
            .filter(
                BudgetAllocationORM.period_id == allocation.period_id,
                BudgetAllocationORM.category_id == allocation.category_id,
            )
            .first()
        )
        if orm_alloc:
            orm_alloc.allocated_cents = allocation.allocated_cents
            orm_alloc.deleted_at = None
            orm_alloc.updated_at = datetime.utcnow()
        else:
            orm_alloc = BudgetAllocationORM(
                allocation_id=allocation.allocation_id,
                period_id=allocation.period_id,
                category_id=allocation.category_id,
                allocated_cents=allocation.allocated_cents,
                created_at=allocation.created_at or datetime.utcnow(),
            )
            self._db.add(orm_alloc)
        self._db.commit()
        self._db.refresh(orm_alloc)
        return self._allocation_to_domain(orm_alloc)

    # Spend ledger

    def create_transaction(self, txn: BudgetTransaction) -> BudgetTransaction:
        orm_txn = BudgetTransactionORM(
            budget_txn_id=txn.budget_txn_id,
            txn_date=txn.txn_date,
            amount_cents=txn.amount_cents,
            description=txn.description,
            saver_key=txn.saver_key,
            category_key=txn.category_key,
            is_income=txn.is_income,
            is_transfer=txn.is_transfer,
            created_at=txn.created_at or datetime.utcnow(),
        )
        self._db.add(orm_txn)
        self._db.commit()
        self._db.refresh(orm_txn)
        return self._transaction_to_domain(orm_txn)

    def list_transactions(self, start_date: date, end_date: date) -> list[BudgetTransaction]:
        """Live spend records with start_date <= date <= end_date."""
        orm_txns = (
            self._db.query(BudgetTransactionORM)
            .filter(
                BudgetTransactionORM.txn_date >= start_date,
                BudgetTransactionORM.txn_date <= end_date,
                active(BudgetTransactionORM),
            )
            .order_by(BudgetTransactionORM.txn_date, BudgetTransactionORM.created_at)
            .all()
        )
        return [self._transaction_to_domain(t) for t in orm_txns]

    @staticmethod
    def _period_to_domain(orm: BudgetPeriodORM) -> BudgetPeriod:
        return BudgetPeriod(
            period_id=orm.period_id,
            start_date=orm.start_date,
            end_date=orm.end_date,
            expected_income_cents=orm.expected_income_cents,
            notes=orm.notes,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            deleted_at=orm.deleted_at,
        )

    @staticmethod
    def _saver_to_domain(orm: BudgetSaverORM) -> BudgetSaver:
        return BudgetSaver(
            saver_id=orm.saver_id,
            saver_key=orm.saver_key,
            display_name=orm.display_name,
            saver_type=orm.saver_type,
            monthly_budget_cents=orm.monthly_budget_cents,
            emoji=orm.emoji,
            colour=orm.colour,
            sort_order=orm.sort_order,
            is_active=orm.is_active,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            deleted_at=orm.deleted_at,
        )

    @staticmethod
    def _category_to_domain(orm: BudgetCategoryORM) -> BudgetCategory:
        return BudgetCategory(
            category_id=orm.category_id,
            saver_id=orm.saver_id,
            category_key=orm.category_key,
            name=orm.name,
            monthly_budget_cents=orm.monthly_budget_cents,
            is_fixed=orm.is_fixed,
            is_income=orm.is_income,
            sort_order=orm.sort_order,
            is_active=orm.is_active,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            deleted_at=orm.deleted_at,
        )

    @staticmethod
    def _allocation_to_domain(orm: BudgetAllocationORM) -> BudgetAllocation:
        return BudgetAllocation(
            allocation_id=orm.allocation_id,
            period_id=orm.period_id,
            category_id=orm.category_id,
            allocated_cents=orm.allocated_cents,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            deleted_at=orm.deleted_at,
        )

    @staticmethod
    def _transaction_to_domain(orm: BudgetTransactionORM) -> BudgetTransaction:
        return BudgetTransaction(
            budget_txn_id=orm.budget_txn_id,
            txn_date=orm.txn_date,
            amount_cents=orm.amount_cents,
            description=orm.description or "",
            saver_key=orm.saver_key,
            category_key=orm.category_key,
            is_income=orm.is_income,
            is_transfer=orm.is_transfer,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            deleted_at=orm.deleted_at,
        )
