"""SQLAlchemy ORM model definitions."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Column,
    String,
    Date,
    DateTime,
    Boolean,
    Integer,
    Text,
    ForeignKey,
    Numeric,
    Index,
    UniqueConstraint,
    Enum as SqlEnum,
    text,
)
from sqlalchemy.orm import relationship

from finboard.repositories.sqlalchemy.database import Base
from finboard.domain.models.enums import (
    HoldingType,
    Currency,
    TransactionAction,
    PriceSource,
    SaverType,
)


class TimestampMixin:
    """Audit and soft-delete columns carried by every domain row."""

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)


class HoldingORM(TimestampMixin, Base):
    """SQLAlchemy model for Holding."""

    __tablename__ = "holdings"

    holding_id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    holding_type = Column(SqlEnum(HoldingType), nullable=False)
    symbol = Column(String(32), nullable=True, index=True)
    currency = Column(SqlEnum(Currency), nullable=False, default=Currency.AUD)
    exchange = Column(String(16), nullable=True)
    is_dormant = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    transactions = relationship("TransactionORM", back_populates="holding")
    snapshots = relationship("SnapshotORM", back_populates="holding")


class TransactionORM(TimestampMixin, Base):
    """SQLAlchemy model for Transaction (ledger entry)."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_holding_order", "holding_id", "txn_date", "sequence"),
    )

    txn_id = Column(String(36), primary_key=True)
    holding_id = Column(String(36), ForeignKey("holdings.holding_id"), nullable=False)
    txn_date = Column(Date, nullable=False)
    action = Column(SqlEnum(TransactionAction), nullable=False)
    quantity = Column(Numeric(precision=24, scale=10), nullable=False)
    unit_price = Column(Numeric(precision=24, scale=10), nullable=False, default=Decimal("0"))
    fees = Column(Numeric(precision=18, scale=4), nullable=False, default=Decimal("0"))
    currency = Column(SqlEnum(Currency), nullable=False, default=Currency.AUD)
    notes = Column(Text, nullable=True)
    sequence = Column(Integer, nullable=False, default=0)

    holding = relationship("HoldingORM", back_populates="transactions")


class SnapshotORM(TimestampMixin, Base):
    """SQLAlchemy model for Snapshot (point-in-time balance)."""

    __tablename__ = "snapshots"
    __table_args__ = (
        Index(
            "uq_snapshots_holding_date_active",
            "holding_id",
            "snapshot_date",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    snapshot_id = Column(String(36), primary_key=True)
    holding_id = Column(String(36), ForeignKey("holdings.holding_id"), nullable=False)
    snapshot_date = Column(Date, nullable=False)
    balance = Column(Numeric(precision=18, scale=4), nullable=False)
    currency = Column(SqlEnum(Currency), nullable=False, default=Currency.AUD)
    notes = Column(Text, nullable=True)

    holding = relationship("HoldingORM", back_populates="snapshots")


class ContributionORM(TimestampMixin, Base):
    """SQLAlchemy model for super Contribution."""

    __tablename__ = "contributions"
    __table_args__ = (
        Index(
            "uq_contributions_holding_date_active",
            "holding_id",
            "contribution_date",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    contribution_id = Column(String(36), primary_key=True)
    holding_id = Column(String(36), ForeignKey("holdings.holding_id"), nullable=False)
    contribution_date = Column(Date, nullable=False)
    employer_contrib = Column(Numeric(precision=18, scale=4), nullable=False, default=Decimal("0"))
    employee_contrib = Column(Numeric(precision=18, scale=4), nullable=False, default=Decimal("0"))
    notes = Column(Text, nullable=True)


class PriceCacheORM(Base):
    """SQLAlchemy model for the shared price cache."""

    __tablename__ = "price_cache"

    symbol = Column(String(32), primary_key=True)
    price = Column(Numeric(precision=24, scale=10), nullable=False)
    currency = Column(SqlEnum(Currency), nullable=False)
    change_percent = Column(Numeric(precision=12, scale=6), nullable=True)
    change_absolute = Column(Numeric(precision=24, scale=10), nullable=True)
    fetched_at = Column(DateTime, nullable=False)
    source = Column(SqlEnum(PriceSource), nullable=False)


class ExchangeRateORM(Base):
    """SQLAlchemy model for the shared exchange-rate cache."""

    __tablename__ = "exchange_rates"

    from_currency = Column(SqlEnum(Currency), primary_key=True)
    to_currency = Column(SqlEnum(Currency), primary_key=True)
    rate = Column(Numeric(precision=18, scale=10), nullable=False)
    fetched_at = Column(DateTime, nullable=False)


class PaydayConfigORM(Base):
    """SQLAlchemy model for the singleton payday rule."""

    __tablename__ = "payday_config"

    config_id = Column(Integer, primary_key=True, default=1)
    payday_day = Column(Integer, nullable=False, default=14)
    adjust_for_weekends = Column(Boolean, nullable=False, default=True)
    income_source_pattern = Column(String(255), nullable=True)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)


class BudgetPeriodORM(TimestampMixin, Base):
    """SQLAlchemy model for BudgetPeriod (read-through cache of resolved periods)."""

    __tablename__ = "budget_periods"

    period_id = Column(String(36), primary_key=True)
    start_date = Column(Date, nullable=False, unique=True)
    end_date = Column(Date, nullable=False)
    expected_income_cents = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)


class BudgetSaverORM(TimestampMixin, Base):
    """SQLAlchemy model for BudgetSaver."""

    __tablename__ = "budget_savers"

    saver_id = Column(String(36), primary_key=True)
    saver_key = Column(String(64), nullable=False, unique=True)
    display_name = Column(String(255), nullable=False)
    saver_type = Column(SqlEnum(SaverType), nullable=False, default=SaverType.SPENDING)
    monthly_budget_cents = Column(Integer, nullable=False, default=0)
    emoji = Column(String(16), nullable=True)
    colour = Column(String(16), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    categories = relationship("BudgetCategoryORM", back_populates="saver")


class BudgetCategoryORM(TimestampMixin, Base):
    """SQLAlchemy model for BudgetCategory."""

    __tablename__ = "budget_categories"
    __table_args__ = (UniqueConstraint("saver_id", "category_key", name="uq_budget_categories_saver_key"),)

    category_id = Column(String(36), primary_key=True)
    saver_id = Column(String(36), ForeignKey("budget_savers.saver_id"), nullable=False)
    category_key = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    monthly_budget_cents = Column(Integer, nullable=False, default=0)
    is_fixed = Column(Boolean, nullable=False, default=False)
    is_income = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    saver = relationship("BudgetSaverORM", back_populates="categories")


class BudgetAllocationORM(TimestampMixin, Base):
    """SQLAlchemy model for BudgetAllocation (per-period override)."""

    __tablename__ = "budget_allocations"
    __table_args__ = (UniqueConstraint("period_id", "category_id", name="uq_budget_allocations_period_category"),)

    allocation_id = Column(String(36), primary_key=True)
    period_id = Column(String(36), ForeignKey("budget_periods.period_id"), nullable=False)
    category_id = Column(String(36), ForeignKey("budget_categories.category_id"), nullable=False)
    allocated_cents = Column(Integer, nullable=False, default=0)


class BudgetTransactionORM(TimestampMixin, Base):
    """SQLAlchemy model for the bank-side spend ledger."""

    __tablename__ = "budget_transactions"

    budget_txn_id = Column(String(36), primary_key=True)
    txn_date = Column(Date, nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    description = Column(Text, nullable=False, default="")
    saver_key = Column(String(64), nullable=True)
    category_key = Column(String(64), nullable=True)
    is_income = Column(Boolean, nullable=False, default=False)
    is_transfer = Column(Boolean, nullable=False, default=False)
