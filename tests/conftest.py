"""
Pytest configuration and fixtures for finboard tests.

This module provides:
- In-memory SQLite database fixtures
- Deterministic, failing and switchable price/rate providers
- Repository and service fixtures
- Factory helpers for holdings, transactions and snapshots
- A FastAPI test client wired to the test database
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from finboard.main import app
from finboard.api.deps import get_price_providers, get_rate_provider
from finboard.repositories.sqlalchemy.database import Base, get_db, reset_database
# Import ORM models to register them with Base before creating tables
from finboard.repositories.sqlalchemy import orm_models  # noqa: F401
from finboard.repositories.sqlalchemy import (
    SqlAlchemyHoldingRepository,
    SqlAlchemyTransactionRepository,
    SqlAlchemySnapshotRepository,
    SqlAlchemyCacheRepository,
    SqlAlchemyBudgetRepository,
)
from finboard.services import (
    CurrencyService,
    LedgerService,
    SnapshotService,
    SnapshotResolver,
    PriceService,
    NetWorthService,
    BudgetService,
    HoldingCreate,
    TransactionCreate,
    SnapshotCreate,
)
from finboard.csv import CsvImporter, CsvExporter, CsvTemplateGenerator
from finboard.core.exceptions import UpstreamUnavailableError
from finboard.domain.models import (
    Currency,
    Holding,
    HoldingType,
    PriceSource,
    Snapshot,
    Transaction,
    TransactionAction,
)
from finboard.domain.views import Quote
from finboard.config.settings import Settings, reset_settings, set_settings


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    reset_settings()


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def holding_repo(test_session) -> SqlAlchemyHoldingRepository:
    return SqlAlchemyHoldingRepository(test_session)


@pytest.fixture
def transaction_repo(test_session) -> SqlAlchemyTransactionRepository:
    return SqlAlchemyTransactionRepository(test_session)


@pytest.fixture
def snapshot_repo(test_session) -> SqlAlchemySnapshotRepository:
    return SqlAlchemySnapshotRepository(test_session)


@pytest.fixture
def cache_repo(test_session) -> SqlAlchemyCacheRepository:
    return SqlAlchemyCacheRepository(test_session)


@pytest.fixture
def budget_repo(test_session) -> SqlAlchemyBudgetRepository:
    return SqlAlchemyBudgetRepository(test_session)


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


class DeterministicPriceProvider:
    """
    Deterministic price provider for testing.

    Prices every tradeable type from a fixed table and counts calls.
    """

    FIXED_QUOTES = {
        "VAS.AX": (Decimal("100.00"), Currency.AUD),
        "VGS.AX": (Decimal("120.00"), Currency.AUD),
        "FPH.NZ": (Decimal("27.30"), Currency.NZD),
        "AAPL": (Decimal("200.00"), Currency.USD),
        "BTC": (Decimal("60000.00"), Currency.USD),
    }

    def __init__(self):
        self.calls: list[str] = []
        self.failing = False

    def supports(self, holding_type: HoldingType) -> bool:
        return holding_type.is_tradeable

    def fetch_price(self, symbol: str, currency_hint: Optional[Currency] = None) -> Quote:
        self.calls.append(symbol)
        if self.failing:
            raise ConnectionError("Network unavailable")
        if symbol not in self.FIXED_QUOTES:
            raise UpstreamUnavailableError("price", f"unknown symbol {symbol}")
        price, currency = self.FIXED_QUOTES[symbol]
        return Quote(
            symbol=symbol,
            price=price,
            currency=currency,
            source=PriceSource.STUB,
            change_percent=Decimal("1.25"),
            change_absolute=Decimal("1.00"),
        )


class DeterministicRateProvider:
    """Fixed exchange rates; set failing=True to simulate an outage."""

    FIXED_RATES = {
        Currency.AUD: {Currency.USD: Decimal("0.65"), Currency.NZD: Decimal("1.08")},
        Currency.USD: {Currency.AUD: Decimal("1.50"), Currency.NZD: Decimal("1.65")},
        Currency.NZD: {Currency.AUD: Decimal("0.92"), Currency.USD: Decimal("0.60")},
    }

    def __init__(self):
        self.calls: list[Currency] = []
        self.failing = False

    def fetch_rates(self, base: Currency) -> dict[Currency, Decimal]:
        self.calls.append(base)
        if self.failing:
            raise ConnectionError("Network unavailable")
        return dict(self.FIXED_RATES[base])


class FailingPriceProvider:
    """Price provider that always raises an exception."""

    def supports(self, holding_type: HoldingType) -> bool:
        return holding_type.is_tradeable

    def fetch_price(self, symbol: str, currency_hint: Optional[Currency] = None) -> Quote:
        raise ConnectionError("Network unavailable")


class FailingRateProvider:
    """Rate provider that always raises an exception."""

    def fetch_rates(self, base: Currency) -> dict[Currency, Decimal]:
        raise ConnectionError("Network unavailable")


@pytest.fixture
def price_provider() -> DeterministicPriceProvider:
    return DeterministicPriceProvider()


@pytest.fixture
def rate_provider() -> DeterministicRateProvider:
    return DeterministicRateProvider()


@pytest.fixture
def failing_price_provider() -> FailingPriceProvider:
    return FailingPriceProvider()


@pytest.fixture
def failing_rate_provider() -> FailingRateProvider:
    return FailingRateProvider()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def ledger_service(holding_repo, transaction_repo) -> LedgerService:
    return LedgerService(holding_repo=holding_repo, transaction_repo=transaction_repo)


@pytest.fixture
def snapshot_service(holding_repo, snapshot_repo) -> SnapshotService:
    return SnapshotService(holding_repo=holding_repo, snapshot_repo=snapshot_repo)


@pytest.fixture
def snapshot_resolver(snapshot_repo) -> SnapshotResolver:
    return SnapshotResolver(snapshot_repo)


@pytest.fixture
def currency_service(rate_provider, cache_repo) -> CurrencyService:
    """CurrencyService with a single attempt and no backoff delay."""
    return CurrencyService(
        rate_provider=rate_provider,
        cache_repo=cache_repo,
        ttl_minutes=60,
        max_retries=1,
        retry_initial_delay=0,
    )


@pytest.fixture
def price_service(price_provider, cache_repo) -> PriceService:
    """PriceService with a single attempt and no backoff delay."""
    return PriceService(
        providers=[price_provider],
        cache_repo=cache_repo,
        ttl_minutes=15,
        fetch_timeout_seconds=5,
        max_workers=4,
        max_retries=1,
        retry_initial_delay=0,
    )


@pytest.fixture
def net_worth_service(ledger_service, price_service, snapshot_resolver, currency_service) -> NetWorthService:
    return NetWorthService(
        ledger_service=ledger_service,
        price_service=price_service,
        snapshot_resolver=snapshot_resolver,
        currency_service=currency_service,
    )


@pytest.fixture
def budget_service(budget_repo) -> BudgetService:
    return BudgetService(
        budget_repo=budget_repo,
        default_payday_day=15,
        default_adjust_for_weekends=True,
        default_expected_income_cents=500000,
    )


@pytest.fixture
def csv_importer(ledger_service, snapshot_service) -> CsvImporter:
    return CsvImporter(ledger_service=ledger_service, snapshot_service=snapshot_service)


@pytest.fixture
def csv_exporter(ledger_service, snapshot_service) -> CsvExporter:
    return CsvExporter(ledger_service=ledger_service, snapshot_service=snapshot_service)


@pytest.fixture
def csv_template_generator() -> CsvTemplateGenerator:
    return CsvTemplateGenerator()


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def holding_factory(ledger_service) -> Callable[..., Holding]:
    """Factory for creating test holdings."""

    def _create_holding(
        holding_type: HoldingType = HoldingType.ETF,
        name: Optional[str] = None,
        symbol: Optional[str] = None,
        exchange: Optional[str] = None,
        currency: Currency = Currency.AUD,
        is_dormant: bool = False,
    ) -> Holding:
        if name is None:
            name = f"Test Holding {uuid.uuid4().hex[:8]}"
        if holding_type.is_tradeable and symbol is None:
            symbol = "VAS"
        if holding_type.requires_exchange and exchange is None:
            exchange = "ASX"
        return ledger_service.create_holding(
            HoldingCreate(
                name=name,
                holding_type=holding_type,
                currency=currency,
                symbol=symbol,
                exchange=exchange,
                is_dormant=is_dormant,
            )
        )

    return _create_holding


@pytest.fixture
def transaction_factory(ledger_service) -> Callable[..., Transaction]:
    """Factory for adding ledger transactions."""

    def _create_transaction(
        holding_id: str,
        action: TransactionAction,
        quantity: Decimal,
        unit_price: Decimal = Decimal("0"),
        fees: Decimal = Decimal("0"),
        txn_date: date = date(2024, 1, 15),
        notes: Optional[str] = None,
    ) -> Transaction:
        return ledger_service.add_transaction(
            TransactionCreate(
                holding_id=holding_id,
                action=action,
                quantity=quantity,
                unit_price=unit_price,
                fees=fees,
                txn_date=txn_date,
                notes=notes,
            )
        )

    return _create_transaction


@pytest.fixture
def snapshot_factory(snapshot_service) -> Callable[..., Snapshot]:
    """Factory for recording balance snapshots."""

    def _create_snapshot(
        holding_id: str,
        snapshot_date: date,
        balance: Decimal,
        currency: Optional[Currency] = None,
    ) -> Snapshot:
        return snapshot_service.create_snapshot(
            SnapshotCreate(
                holding_id=holding_id,
                snapshot_date=snapshot_date,
                balance=balance,
                currency=currency,
            )
        )

    return _create_snapshot


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def client(test_engine, tmp_path, price_provider, rate_provider) -> TestClient:
    """Provide FastAPI test client with test database and deterministic providers."""
    set_settings(
        Settings(
            data_dir=tmp_path,
            database_url="sqlite://",
            provider_max_retries=1,
            provider_retry_initial_delay_seconds=0,
        )
    )
    reset_database()
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_price_providers] = lambda: [price_provider]
    app.dependency_overrides[get_rate_provider] = lambda: rate_provider
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_database()


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(actual - expected)
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"
