"""SQLAlchemy repository implementations."""

from finboard.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_db,
    init_db,
    reset_database,
    Base,
)
from finboard.repositories.sqlalchemy.filters import active
from finboard.repositories.sqlalchemy.holding_repo import SqlAlchemyHoldingRepository
from finboard.repositories.sqlalchemy.transaction_repo import SqlAlchemyTransactionRepository
from finboard.repositories.sqlalchemy.snapshot_repo import SqlAlchemySnapshotRepository
from finboard.repositories.sqlalchemy.cache_repo import SqlAlchemyCacheRepository
from finboard.repositories.sqlalchemy.budget_repo import SqlAlchemyBudgetRepository

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_db",
    "init_db",
    "reset_database",
    "Base",
    "active",
    "SqlAlchemyHoldingRepository",
    "SqlAlchemyTransactionRepository",
    "SqlAlchemySnapshotRepository",
    "SqlAlchemyCacheRepository",
    "SqlAlchemyBudgetRepository",
]
