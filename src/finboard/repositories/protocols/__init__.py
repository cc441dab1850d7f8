"""Repository protocol definitions (interfaces)."""

from finboard.repositories.protocols.holding_repo import HoldingRepository
from finboard.repositories.protocols.transaction_repo import TransactionRepository
from finboard.repositories.protocols.snapshot_repo import SnapshotRepository
from finboard.repositories.protocols.cache_repo import CacheRepository
from finboard.repositories.protocols.budget_repo import BudgetRepository

__all__ = [
    "HoldingRepository",
    "TransactionRepository",
    "SnapshotRepository",
    "CacheRepository",
    "BudgetRepository",
]
