"""API routers package."""

from finboard.api.routers.holdings import router as holdings_router
from finboard.api.routers.transactions import router as transactions_router
from finboard.api.routers.snapshots import router as snapshots_router
from finboard.api.routers.net_worth import router as net_worth_router
from finboard.api.routers.market import router as market_router
from finboard.api.routers.budget import router as budget_router
from finboard.api.routers.imports import router as imports_router

__all__ = [
    "holdings_router",
    "transactions_router",
    "snapshots_router",
    "net_worth_router",
    "market_router",
    "budget_router",
    "imports_router",
]
