"""Dependency injection for FastAPI."""

from fastapi import Depends
from sqlalchemy.orm import Session

from finboard.repositories.sqlalchemy.database import get_db
from finboard.repositories.sqlalchemy import (
    SqlAlchemyHoldingRepository,
    SqlAlchemyTransactionRepository,
    SqlAlchemySnapshotRepository,
    SqlAlchemyCacheRepository,
    SqlAlchemyBudgetRepository,
)
from finboard.providers import (
    PriceProvider,
    RateProvider,
    StubMarketDataProvider,
    YahooFinanceProvider,
    CoinGeckoProvider,
    ExchangeRateApiProvider,
)
from finboard.services import (
    CurrencyService,
    LedgerService,
    SnapshotService,
    SnapshotResolver,
    PriceService,
    NetWorthService,
    BudgetService,
)
from finboard.csv import CsvImporter, CsvExporter, CsvTemplateGenerator
from finboard.config.settings import get_settings


def get_holding_repo(db: Session = Depends(get_db)) -> SqlAlchemyHoldingRepository:
    """Provide HoldingRepository instance."""
    return SqlAlchemyHoldingRepository(db)


def get_transaction_repo(db: Session = Depends(get_db)) -> SqlAlchemyTransactionRepository:
    """Provide TransactionRepository instance."""
    return SqlAlchemyTransactionRepository(db)


def get_snapshot_repo(db: Session = Depends(get_db)) -> SqlAlchemySnapshotRepository:
    """Provide SnapshotRepository instance."""
    return SqlAlchemySnapshotRepository(db)


def get_cache_repo(db: Session = Depends(get_db)) -> SqlAlchemyCacheRepository:
    """Provide CacheRepository instance."""
    return SqlAlchemyCacheRepository(db)


def get_budget_repo(db: Session = Depends(get_db)) -> SqlAlchemyBudgetRepository:
    """Provide BudgetRepository instance."""
    return SqlAlchemyBudgetRepository(db)


def get_price_providers() -> list[PriceProvider]:
    """Provide price sources: yfinance for equities and CoinGecko for crypto, or the offline stub."""
    settings = get_settings()
    if settings.use_stub_providers:
        return [StubMarketDataProvider()]
    return [
        YahooFinanceProvider(),
        CoinGeckoProvider(base_url=settings.coingecko_base_url, timeout=settings.http_timeout_seconds),
    ]


def get_rate_provider() -> RateProvider:
    """Provide the exchange-rate source."""
    settings = get_settings()
    if settings.use_stub_providers:
        return StubMarketDataProvider()
    return ExchangeRateApiProvider(
        api_key=settings.exchange_rate_api_key,
        open_base_url=settings.exchange_rate_base_url,
        keyed_base_url=settings.exchange_rate_keyed_base_url,
        timeout=settings.http_timeout_seconds,
    )


def get_ledger_service(
    holding_repo: SqlAlchemyHoldingRepository = Depends(get_holding_repo),
    transaction_repo: SqlAlchemyTransactionRepository = Depends(get_transaction_repo),
) -> LedgerService:
    """Provide LedgerService instance."""
    return LedgerService(
        holding_repo=holding_repo,
        transaction_repo=transaction_repo,
    )


def get_snapshot_service(
    holding_repo: SqlAlchemyHoldingRepository = Depends(get_holding_repo),
    snapshot_repo: SqlAlchemySnapshotRepository = Depends(get_snapshot_repo),
) -> SnapshotService:
    """Provide SnapshotService instance."""
    return SnapshotService(holding_repo=holding_repo, snapshot_repo=snapshot_repo)


def get_snapshot_resolver(
    snapshot_repo: SqlAlchemySnapshotRepository = Depends(get_snapshot_repo),
) -> SnapshotResolver:
    """Provide SnapshotResolver instance."""
    return SnapshotResolver(snapshot_repo)


def get_currency_service(
    rate_provider: RateProvider = Depends(get_rate_provider),
    cache_repo: SqlAlchemyCacheRepository = Depends(get_cache_repo),
) -> CurrencyService:
    """Provide CurrencyService instance."""
    settings = get_settings()
    return CurrencyService(
        rate_provider=rate_provider,
        cache_repo=cache_repo,
        ttl_minutes=settings.exchange_rate_cache_ttl_minutes,
        max_retries=settings.provider_max_retries,
        retry_initial_delay=settings.provider_retry_initial_delay_seconds,
    )


def get_price_service(
    providers: list[PriceProvider] = Depends(get_price_providers),
    cache_repo: SqlAlchemyCacheRepository = Depends(get_cache_repo),
) -> PriceService:
    """Provide PriceService instance."""
    settings = get_settings()
    return PriceService(
        providers=providers,
        cache_repo=cache_repo,
        ttl_minutes=settings.price_cache_ttl_minutes,
        fetch_timeout_seconds=settings.price_fetch_timeout_seconds,
        max_workers=settings.price_fetch_max_workers,
        max_retries=settings.provider_max_retries,
        retry_initial_delay=settings.provider_retry_initial_delay_seconds,
    )


def get_net_worth_service(
    ledger_service: LedgerService = Depends(get_ledger_service),
    price_service: PriceService = Depends(get_price_service),
    snapshot_resolver: SnapshotResolver = Depends(get_snapshot_resolver),
    currency_service: CurrencyService = Depends(get_currency_service),
) -> NetWorthService:
    """Provide NetWorthService instance."""
    return NetWorthService(
        ledger_service=ledger_service,
        price_service=price_service,
        snapshot_resolver=snapshot_resolver,
        currency_service=currency_service,
    )


def get_budget_service(
    budget_repo: SqlAlchemyBudgetRepository = Depends(get_budget_repo),
) -> BudgetService:
    """Provide BudgetService instance."""
    settings = get_settings()
    return BudgetService(
        budget_repo=budget_repo,
        default_payday_day=settings.payday_day,
        default_adjust_for_weekends=settings.adjust_payday_for_weekends,
        default_expected_income_cents=settings.expected_income_cents,
        near_pace_margin=settings.near_pace_margin,
    )


def get_csv_importer(
    ledger_service: LedgerService = Depends(get_ledger_service),
    snapshot_service: SnapshotService = Depends(get_snapshot_service),
) -> CsvImporter:
    """Provide CsvImporter instance."""
    return CsvImporter(
        ledger_service=ledger_service,
        snapshot_service=snapshot_service,
        create_holdings=get_settings().import_create_holdings,
    )


def get_csv_exporter(
    ledger_service: LedgerService = Depends(get_ledger_service),
    snapshot_service: SnapshotService = Depends(get_snapshot_service),
) -> CsvExporter:
    """Provide CsvExporter instance."""
    return CsvExporter(ledger_service=ledger_service, snapshot_service=snapshot_service)


def get_csv_template_generator() -> CsvTemplateGenerator:
    """Provide CsvTemplateGenerator instance."""
    return CsvTemplateGenerator()
