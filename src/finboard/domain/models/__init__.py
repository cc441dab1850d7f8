"""Domain models package."""

from finboard.domain.models.enums import (
    HoldingType,
    Currency,
    TransactionAction,
    CostBasisMethod,
    PriceSource,
    SaverType,
    PaceStatus,
    AnomalyType,
    AnomalySeverity,
    TRADEABLE_TYPES,
    SNAPSHOT_TYPES,
)
from finboard.domain.models.holding import Holding
from finboard.domain.models.transaction import Transaction
from finboard.domain.models.snapshot import Snapshot, Contribution
from finboard.domain.models.cache import PriceCacheEntry, ExchangeRateEntry
from finboard.domain.models.budget import (
    PaydayConfig,
    BudgetPeriod,
    BudgetSaver,
    BudgetCategory,
    BudgetAllocation,
    BudgetTransaction,
)
from finboard.domain.models.lifecycle import is_active, active_only

__all__ = [
    "HoldingType",
    "Currency",
    "TransactionAction",
    "CostBasisMethod",
    "PriceSource",
    "SaverType",
    "PaceStatus",
    "AnomalyType",
    "AnomalySeverity",
    "TRADEABLE_TYPES",
    "SNAPSHOT_TYPES",
    "Holding",
    "Transaction",
    "Snapshot",
    "Contribution",
    "PriceCacheEntry",
    "ExchangeRateEntry",
    "PaydayConfig",
    "BudgetPeriod",
    "BudgetSaver",
    "BudgetCategory",
    "BudgetAllocation",
    "BudgetTransaction",
    "is_active",
    "active_only",
]
