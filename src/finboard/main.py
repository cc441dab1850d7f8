"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from finboard.config.settings import get_settings
from finboard.config.logging_config import setup_logging
from finboard.repositories.sqlalchemy.database import init_db
from finboard.api.routers import (
    holdings_router,
    transactions_router,
    snapshots_router,
    net_worth_router,
    market_router,
    budget_router,
    imports_router,
)
from finboard.core.exceptions import AppError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    init_db()
    yield
    # Shutdown (nothing to clean up)


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Personal finance dashboard: holdings, net worth and pay-cycle budgets",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(holdings_router)
app.include_router(transactions_router)
app.include_router(snapshots_router)
app.include_router(net_worth_router)
app.include_router(market_router)
app.include_router(budget_router)
app.include_router(imports_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message, "field": exc.field},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
