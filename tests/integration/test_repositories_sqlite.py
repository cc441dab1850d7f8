"""
Integration tests for SQLAlchemy repositories with SQLite.

Tests cover:
- Holding repository lookups and soft delete
- Transaction ordering by (date, sequence) and natural-key duplicates
- Snapshot uniqueness among live rows only
- Price and rate cache upserts
- Budget period insert-if-absent and allocation upserts
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from finboard.domain.models import (
    BudgetAllocation,
    BudgetPeriod,
    Contribution,
    Currency,
    ExchangeRateEntry,
    Holding,
    HoldingType,
    PriceCacheEntry,
    PriceSource,
    Snapshot,
    Transaction,
    TransactionAction,
)
from finboard.repositories.sqlalchemy import (
    SqlAlchemyBudgetRepository,
    SqlAlchemyCacheRepository,
    SqlAlchemyHoldingRepository,
    SqlAlchemySnapshotRepository,
    SqlAlchemyTransactionRepository,
)


@pytest.fixture
def etf(holding_repo: SqlAlchemyHoldingRepository) -> Holding:
    return holding_repo.create(
        Holding(
            holding_id="h-vas",
            name="Vanguard Australian Shares",
            holding_type=HoldingType.ETF,
            symbol="VAS",
            exchange="ASX",
        )
    )


@pytest.fixture
def fund(holding_repo: SqlAlchemyHoldingRepository) -> Holding:
    return holding_repo.create(
        Holding(holding_id="h-super", name="Australian Super", holding_type=HoldingType.SUPER)
    )


# =============================================================================
# HOLDING REPOSITORY TESTS
# =============================================================================


class TestHoldingRepository:
    """Tests for SqlAlchemyHoldingRepository."""

    def test_create_and_lookup(self, holding_repo: SqlAlchemyHoldingRepository, etf: Holding):
        """
        GIVEN a persisted ETF holding
        WHEN I look it up by id, symbol and name
        THEN each lookup returns the same holding
        """
        assert holding_repo.get_by_id("h-vas").name == "Vanguard Australian Shares"
        assert holding_repo.get_by_symbol("vas").holding_id == "h-vas"
        assert holding_repo.get_by_name("  vanguard australian shares ").holding_id == "h-vas"
        assert holding_repo.get_by_id("h-vas").created_at is not None

    def test_soft_deleted_hidden_from_reads(self, holding_repo: SqlAlchemyHoldingRepository, etf: Holding):
        etf.deleted_at = datetime(2024, 2, 1)
        holding_repo.update(etf)

        assert holding_repo.get_by_id("h-vas") is None
        assert holding_repo.get_by_id("h-vas", include_deleted=True) is not None
        assert holding_repo.get_by_symbol("VAS") is None
        assert holding_repo.list_all() == []

    def test_list_filters(self, holding_repo: SqlAlchemyHoldingRepository, etf: Holding, fund: Holding):
        holding_repo.create(
            Holding(holding_id="h-old", name="Old cash", holding_type=HoldingType.CASH, is_dormant=True)
        )

        assert [h.holding_id for h in holding_repo.list_all()] == ["h-super", "h-old", "h-vas"]
        assert len(holding_repo.list_all(include_dormant=False)) == 2
        assert [h.holding_id for h in holding_repo.list_all(holding_types=[HoldingType.SUPER])] == ["h-super"]


# =============================================================================
# TRANSACTION REPOSITORY TESTS
# =============================================================================


class TestTransactionRepository:
    """Tests for SqlAlchemyTransactionRepository."""

    def test_sequence_breaks_same_day_ties(
        self,
        transaction_repo: SqlAlchemyTransactionRepository,
        etf: Holding,
    ):
        """
        GIVEN two transactions on the same day inserted after a later-dated one
        WHEN I list the holding's transactions
        THEN they come back by date, then insertion order
        """
        for txn_id, txn_date in [("t-late", date(2024, 3, 1)), ("t-a", date(2024, 1, 15)), ("t-b", date(2024, 1, 15))]:
            transaction_repo.create(
                Transaction(
                    txn_id=txn_id,
                    holding_id=etf.holding_id,
                    txn_date=txn_date,
                    action=TransactionAction.BUY,
                    quantity=Decimal("1"),
                )
            )

        txns = transaction_repo.list_by_holding(etf.holding_id)

        assert [t.txn_id for t in txns] == ["t-a", "t-b", "t-late"]
        assert [t.sequence for t in txns] == [2, 3, 1]

    def test_decimal_precision_round_trips(
        self,
        transaction_repo: SqlAlchemyTransactionRepository,
        etf: Holding,
    ):
        transaction_repo.create(
            Transaction(
                txn_id="t-1",
                holding_id=etf.holding_id,
                txn_date=date(2024, 1, 15),
                action=TransactionAction.BUY,
                quantity=Decimal("0.12345678"),
                unit_price=Decimal("95.1234"),
                fees=Decimal("9.95"),
            )
        )

        txn = transaction_repo.get_by_id("t-1")

        assert txn.quantity == Decimal("0.12345678")
        assert txn.unit_price == Decimal("95.1234")
        assert txn.fees == Decimal("9.95")

    def test_find_duplicate_by_natural_key(
        self,
        transaction_repo: SqlAlchemyTransactionRepository,
        etf: Holding,
    ):
        transaction_repo.create(
            Transaction(
                txn_id="t-1",
                holding_id=etf.holding_id,
                txn_date=date(2024, 1, 15),
                action=TransactionAction.BUY,
                quantity=Decimal("10"),
                unit_price=Decimal("95.50"),
            )
        )

        found = transaction_repo.find_duplicate(
            etf.holding_id, date(2024, 1, 15), TransactionAction.BUY, Decimal("10.0"), Decimal("95.5")
        )
        missing = transaction_repo.find_duplicate(
            etf.holding_id, date(2024, 1, 15), TransactionAction.BUY, Decimal("10"), Decimal("96")
        )

        assert found.txn_id == "t-1"
        assert missing is None

    def test_query_date_range_and_actions(
        self,
        transaction_repo: SqlAlchemyTransactionRepository,
        etf: Holding,
    ):
        rows = [
            ("t-1", date(2024, 1, 15), TransactionAction.BUY),
            ("t-2", date(2024, 2, 15), TransactionAction.DIVIDEND),
            ("t-3", date(2024, 3, 15), TransactionAction.SELL),
        ]
        for txn_id, txn_date, action in rows:
            transaction_repo.create(
                Transaction(
                    txn_id=txn_id,
                    holding_id=etf.holding_id,
                    txn_date=txn_date,
                    action=action,
                    quantity=Decimal("1"),
                )
            )

        in_range = transaction_repo.query(start_date=date(2024, 2, 1), end_date=date(2024, 3, 31))
        buys = transaction_repo.query(actions=[TransactionAction.BUY])

        assert [t.txn_id for t in in_range] == ["t-2", "t-3"]
        assert [t.txn_id for t in buys] == ["t-1"]


# =============================================================================
# SNAPSHOT REPOSITORY TESTS
# =============================================================================


class TestSnapshotRepository:
    """Tests for SqlAlchemySnapshotRepository."""

    def test_one_live_snapshot_per_date(
        self,
        snapshot_repo: SqlAlchemySnapshotRepository,
        fund: Holding,
    ):
        """
        GIVEN a live snapshot for a date
        WHEN another live snapshot is inserted for the same date
        THEN the database rejects it
        """
        snapshot_repo.create(
            Snapshot(snapshot_id="s-1", holding_id=fund.holding_id, snapshot_date=date(2024, 1, 31), balance=Decimal("1000"))
        )

        with pytest.raises(IntegrityError):
            snapshot_repo.create(
                Snapshot(snapshot_id="s-2", holding_id=fund.holding_id, snapshot_date=date(2024, 1, 31), balance=Decimal("1100"))
            )

    def test_deleted_snapshot_frees_its_date(
        self,
        snapshot_repo: SqlAlchemySnapshotRepository,
        fund: Holding,
    ):
        first = snapshot_repo.create(
            Snapshot(snapshot_id="s-1", holding_id=fund.holding_id, snapshot_date=date(2024, 1, 31), balance=Decimal("1000"))
        )
        first.deleted_at = datetime(2024, 2, 1)
        snapshot_repo.update(first)

        snapshot_repo.create(
            Snapshot(snapshot_id="s-2", holding_id=fund.holding_id, snapshot_date=date(2024, 1, 31), balance=Decimal("1100"))
        )

        assert snapshot_repo.get_for_date(fund.holding_id, date(2024, 1, 31)).snapshot_id == "s-2"
        assert [s.snapshot_id for s in snapshot_repo.list_by_holding(fund.holding_id)] == ["s-2"]

    def test_list_up_to(self, snapshot_repo: SqlAlchemySnapshotRepository, fund: Holding):
        for snapshot_id, snapshot_date in [("s-2", date(2024, 2, 29)), ("s-1", date(2024, 1, 31))]:
            snapshot_repo.create(
                Snapshot(snapshot_id=snapshot_id, holding_id=fund.holding_id, snapshot_date=snapshot_date, balance=Decimal("1"))
            )

        assert [s.snapshot_id for s in snapshot_repo.list_by_holdings([fund.holding_id])] == ["s-1", "s-2"]
        assert [s.snapshot_id for s in snapshot_repo.list_by_holdings([fund.holding_id], up_to=date(2024, 2, 1))] == ["s-1"]
        assert snapshot_repo.list_by_holdings([]) == []

    def test_contributions(self, snapshot_repo: SqlAlchemySnapshotRepository, fund: Holding):
        created = snapshot_repo.create_contribution(
            Contribution(
                contribution_id="c-1",
                holding_id=fund.holding_id,
                contribution_date=date(2024, 1, 31),
                employer_contrib=Decimal("1150"),
            )
        )
        created.employee_contrib = Decimal("200")
        snapshot_repo.update_contribution(created)

        stored = snapshot_repo.get_contribution(fund.holding_id, date(2024, 1, 31))

        assert stored.employer_contrib == Decimal("1150")
        assert stored.total == Decimal("1350")


# =============================================================================
# CACHE REPOSITORY TESTS
# =============================================================================


class TestCacheRepository:
    """Tests for SqlAlchemyCacheRepository."""

    def test_price_upsert_last_write_wins(self, cache_repo: SqlAlchemyCacheRepository):
        cache_repo.upsert_price(
            PriceCacheEntry("vas.ax", Decimal("98.40"), Currency.AUD, datetime(2024, 1, 15, 10, 0), PriceSource.YAHOO)
        )
        cache_repo.upsert_price(
            PriceCacheEntry(
                "VAS.AX",
                Decimal("99.10"),
                Currency.AUD,
                datetime(2024, 1, 15, 10, 30),
                PriceSource.YAHOO,
                change_percent=Decimal("0.71"),
            )
        )

        entry = cache_repo.get_price("Vas.Ax")

        assert entry.price == Decimal("99.10")
        assert entry.change_percent == Decimal("0.71")
        assert entry.fetched_at == datetime(2024, 1, 15, 10, 30)
        assert len(cache_repo.list_prices()) == 1
        assert cache_repo.list_prices(["BTC"]) == []

    def test_rate_upsert_per_ordered_pair(self, cache_repo: SqlAlchemyCacheRepository):
        fetched = datetime(2024, 1, 15, 10, 0)
        cache_repo.upsert_rate(ExchangeRateEntry(Currency.AUD, Currency.USD, Decimal("0.65"), fetched))
        cache_repo.upsert_rate(ExchangeRateEntry(Currency.USD, Currency.AUD, Decimal("1.50"), fetched))
        cache_repo.upsert_rate(ExchangeRateEntry(Currency.AUD, Currency.USD, Decimal("0.66"), fetched))

        assert cache_repo.get_rate(Currency.AUD, Currency.USD).rate == Decimal("0.66")
        assert cache_repo.get_rate(Currency.USD, Currency.AUD).rate == Decimal("1.50")
        assert cache_repo.get_rate(Currency.NZD, Currency.AUD) is None
        assert len(cache_repo.list_rates()) == 2


# =============================================================================
# BUDGET REPOSITORY TESTS
# =============================================================================


class TestBudgetRepository:
    """Tests for SqlAlchemyBudgetRepository."""

    def test_insert_period_if_absent(self, budget_repo: SqlAlchemyBudgetRepository):
        """
        GIVEN a stored period starting 2024-06-14
        WHEN a second period with the same start is inserted
        THEN the stored period wins and no duplicate exists
        """
        first = budget_repo.insert_period_if_absent(
            BudgetPeriod(period_id="p-1", start_date=date(2024, 6, 14), end_date=date(2024, 7, 14), expected_income_cents=500000)
        )
        second = budget_repo.insert_period_if_absent(
            BudgetPeriod(period_id="p-2", start_date=date(2024, 6, 14), end_date=date(2024, 7, 14), expected_income_cents=1)
        )

        assert first.period_id == "p-1"
        assert second.period_id == "p-1"
        assert second.expected_income_cents == 500000
        assert len(budget_repo.list_periods()) == 1
        assert budget_repo.find_period_containing(date(2024, 7, 14)).period_id == "p-1"
        assert budget_repo.find_period_containing(date(2024, 7, 15)) is None

    def test_allocation_upsert(self, budget_repo: SqlAlchemyBudgetRepository):
        budget_repo.insert_period_if_absent(
            BudgetPeriod(period_id="p-1", start_date=date(2024, 6, 14), end_date=date(2024, 7, 14))
        )
        budget_repo.upsert_allocation(BudgetAllocation("a-1", "p-1", "cat-1", 40000))
        budget_repo.upsert_allocation(BudgetAllocation("a-2", "p-1", "cat-1", 45000))

        allocations = budget_repo.list_allocations("p-1")

        assert len(allocations) == 1
        assert allocations[0].allocation_id == "a-1"
        assert allocations[0].allocated_cents == 45000
