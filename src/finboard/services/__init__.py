"""Service layer - calculation engines and orchestration."""

from finboard.services.currency import CurrencyService
from finboard.services.ledger_service import (
    LedgerService,
    HoldingCreate,
    HoldingUpdate,
    TransactionCreate,
    TransactionUpdate,
)
from finboard.services.snapshot_service import (
    SnapshotService,
    SnapshotCreate,
    SnapshotUpdate,
    ContributionUpsert,
)
from finboard.services.snapshot_resolver import SnapshotResolver
from finboard.services.price_service import PriceService
from finboard.services.net_worth import NetWorthService
from finboard.services.budget_service import BudgetService

__all__ = [
    "CurrencyService",
    "LedgerService",
    "HoldingCreate",
    "HoldingUpdate",
    "TransactionCreate",
    "TransactionUpdate",
    "SnapshotService",
    "SnapshotCreate",
    "SnapshotUpdate",
    "ContributionUpsert",
    "SnapshotResolver",
    "PriceService",
    "NetWorthService",
    "BudgetService",
]
