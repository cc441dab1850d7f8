"""
Unit tests for LedgerService.

Tests cover:
- Holding creation and type-specific validation
- Holding edit, soft delete and restore
- Transaction creation with amount validation
- Rejection of sells that exceed holdings
- Edit/delete/restore replaying the full history
- Position derivation from the ledger
"""

import pytest
from datetime import date
from decimal import Decimal
from typing import Callable

from finboard.core.exceptions import NotFoundError, SellExceedsHoldingsError, ValidationError
from finboard.domain.models import (
    CostBasisMethod,
    Currency,
    Holding,
    HoldingType,
    TransactionAction,
)
from finboard.services import (
    HoldingCreate,
    HoldingUpdate,
    LedgerService,
    TransactionCreate,
    TransactionUpdate,
)


# =============================================================================
# HOLDINGS
# =============================================================================


class TestCreateHolding:
    """Tests for holding creation."""

    def test_create_etf_normalizes_symbol_and_exchange(self, ledger_service: LedgerService):
        """
        GIVEN an ETF with lower-case symbol and exchange
        WHEN I create it
        THEN both are stored upper-case
        """
        holding = ledger_service.create_holding(
            HoldingCreate(name="Vanguard Aus Shares", holding_type=HoldingType.ETF, symbol="vas", exchange="asx")
        )

        assert holding.symbol == "VAS"
        assert holding.exchange == "ASX"
        assert holding.currency == Currency.AUD
        assert holding.holding_id

    def test_tradeable_requires_symbol(self, ledger_service: LedgerService):
        with pytest.raises(ValidationError) as exc_info:
            ledger_service.create_holding(HoldingCreate(name="Bitcoin", holding_type=HoldingType.CRYPTO))

        assert exc_info.value.field == "symbol"

    def test_stock_requires_exchange(self, ledger_service: LedgerService):
        with pytest.raises(ValidationError) as exc_info:
            ledger_service.create_holding(
                HoldingCreate(name="Apple", holding_type=HoldingType.STOCK, symbol="AAPL")
            )

        assert exc_info.value.field == "exchange"

    def test_crypto_does_not_need_exchange(self, ledger_service: LedgerService):
        holding = ledger_service.create_holding(
            HoldingCreate(name="Bitcoin", holding_type=HoldingType.CRYPTO, symbol="btc", currency=Currency.USD)
        )

        assert holding.symbol == "BTC"
        assert holding.exchange is None

    def test_snapshot_type_needs_no_symbol(self, ledger_service: LedgerService):
        holding = ledger_service.create_holding(HoldingCreate(name="Everyday", holding_type=HoldingType.CASH))

        assert holding.symbol is None
        assert holding.is_tradeable is False

    def test_blank_name_rejected(self, ledger_service: LedgerService):
        with pytest.raises(ValidationError) as exc_info:
            ledger_service.create_holding(HoldingCreate(name="   ", holding_type=HoldingType.CASH))

        assert exc_info.value.field == "name"


class TestHoldingLifecycle:
    """Tests for editing, deleting and restoring holdings."""

    def test_update_holding_fields(self, ledger_service: LedgerService, holding_factory: Callable[..., Holding]):
        holding = holding_factory(name="Old Name")

        updated = ledger_service.update_holding(
            holding.holding_id, HoldingUpdate(name="New Name", is_dormant=True)
        )

        assert updated.name == "New Name"
        assert updated.is_dormant is True
        assert updated.holding_type == HoldingType.ETF

    def test_update_cannot_clear_required_symbol(
        self, ledger_service: LedgerService, holding_factory: Callable[..., Holding]
    ):
        holding = holding_factory()

        with pytest.raises(ValidationError):
            ledger_service.update_holding(holding.holding_id, HoldingUpdate(symbol=""))

    def test_delete_hides_holding_and_restore_brings_it_back(
        self, ledger_service: LedgerService, holding_factory: Callable[..., Holding]
    ):
        """
        GIVEN a holding
        WHEN I delete it and then restore it
        THEN it is hidden while deleted and visible again after restore
        """
        holding = holding_factory()

        ledger_service.delete_holding(holding.holding_id)
        with pytest.raises(NotFoundError):
            ledger_service.get_holding(holding.holding_id)
        assert ledger_service.list_holdings() == []

        restored = ledger_service.restore_holding(holding.holding_id)
        assert restored.deleted_at is None
        assert ledger_service.get_holding(holding.holding_id).name == holding.name

    def test_list_holdings_filters(self, ledger_service: LedgerService, holding_factory: Callable[..., Holding]):
        holding_factory(name="A ETF")
        holding_factory(holding_type=HoldingType.CASH, name="B Cash", is_dormant=True)

        assert len(ledger_service.list_holdings()) == 2
        assert [h.name for h in ledger_service.list_holdings(include_dormant=False)] == ["A ETF"]
        assert [h.name for h in ledger_service.list_holdings(holding_types=[HoldingType.CASH])] == ["B Cash"]

    def test_get_missing_holding(self, ledger_service: LedgerService):
        with pytest.raises(NotFoundError):
            ledger_service.get_holding("does-not-exist")


# =============================================================================
# TRANSACTIONS
# =============================================================================


class TestAddTransaction:
    """Tests for recording ledger transactions."""

    def test_add_buy(self, ledger_service: LedgerService, holding_factory: Callable[..., Holding]):
        holding = holding_factory()

        txn = ledger_service.add_transaction(
            TransactionCreate(
                holding_id=holding.holding_id,
                action=TransactionAction.BUY,
                quantity=Decimal("6"),
                unit_price=Decimal("95.20"),
                fees=Decimal("7.50"),
                txn_date=date(2024, 1, 15),
            )
        )

        assert txn.quantity == Decimal("6")
        assert txn.currency == Currency.AUD
        assert txn.sequence == 1

    def test_sequence_increments(
        self,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        holding = holding_factory()

        first = transaction_factory(holding.holding_id, TransactionAction.BUY, Decimal("1"), Decimal("10"))
        second = transaction_factory(holding.holding_id, TransactionAction.BUY, Decimal("1"), Decimal("10"))

        assert second.sequence == first.sequence + 1

    def test_sequence_stays_ahead_of_deleted_rows(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        """
        GIVEN a same-day transaction that was deleted
        WHEN I add another that day and then restore the deleted one
        THEN the restored row keeps its place ahead of the newer insert
        """
        holding = holding_factory()
        first = transaction_factory(holding.holding_id, TransactionAction.BUY, Decimal("1"), Decimal("10"))
        removed = transaction_factory(holding.holding_id, TransactionAction.BUY, Decimal("2"), Decimal("10"))
        ledger_service.delete_transaction(removed.txn_id)

        newest = transaction_factory(holding.holding_id, TransactionAction.BUY, Decimal("3"), Decimal("10"))
        ledger_service.restore_transaction(removed.txn_id)

        assert newest.sequence > removed.sequence
        ordered = ledger_service.list_transactions(holding_ids=[holding.holding_id])
        assert [t.txn_id for t in ordered] == [first.txn_id, removed.txn_id, newest.txn_id]

    def test_transactions_rejected_for_snapshot_holdings(
        self, ledger_service: LedgerService, holding_factory: Callable[..., Holding]
    ):
        cash = holding_factory(holding_type=HoldingType.CASH)

        with pytest.raises(ValidationError) as exc_info:
            ledger_service.add_transaction(
                TransactionCreate(
                    holding_id=cash.holding_id,
                    action=TransactionAction.BUY,
                    quantity=Decimal("1"),
                    unit_price=Decimal("1"),
                )
            )

        assert exc_info.value.field == "holding_id"

    @pytest.mark.parametrize(
        "quantity,unit_price,fees,field",
        [
            (Decimal("0"), Decimal("10"), Decimal("0"), "quantity"),
            (Decimal("-1"), Decimal("10"), Decimal("0"), "quantity"),
            (Decimal("1"), Decimal("-10"), Decimal("0"), "unit_price"),
            (Decimal("1"), Decimal("10"), Decimal("-1"), "fees"),
        ],
    )
    def test_invalid_amounts(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        quantity: Decimal,
        unit_price: Decimal,
        fees: Decimal,
        field: str,
    ):
        holding = holding_factory()

        with pytest.raises(ValidationError) as exc_info:
            ledger_service.add_transaction(
                TransactionCreate(
                    holding_id=holding.holding_id,
                    action=TransactionAction.BUY,
                    quantity=quantity,
                    unit_price=unit_price,
                    fees=fees,
                )
            )

        assert exc_info.value.field == field

    def test_sell_exceeding_holdings_rejected(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        """
        GIVEN a holding with 5 units
        WHEN I try to sell 8
        THEN SellExceedsHoldingsError is raised and nothing is stored
        """
        holding = holding_factory()
        transaction_factory(holding.holding_id, TransactionAction.BUY, Decimal("5"), Decimal("10"))

        with pytest.raises(SellExceedsHoldingsError) as exc_info:
            transaction_factory(
                holding.holding_id,
                TransactionAction.SELL,
                Decimal("8"),
                Decimal("10"),
                txn_date=date(2024, 2, 1),
            )

        assert "short by 3" in exc_info.value.message
        assert len(ledger_service.list_transactions(holding_ids=[holding.holding_id])) == 1

    def test_backdated_sell_before_buy_rejected(
        self,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        """
        GIVEN a BUY dated in March
        WHEN a SELL dated in February is added
        THEN it is rejected because quantity would dip below zero in February
        """
        holding = holding_factory()
        transaction_factory(
            holding.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("10"), txn_date=date(2024, 3, 1)
        )

        with pytest.raises(SellExceedsHoldingsError):
            transaction_factory(
                holding.holding_id, TransactionAction.SELL, Decimal("1"), Decimal("10"), txn_date=date(2024, 2, 1)
            )


class TestEditDeleteRestore:
    """Tests for history-changing writes."""

    def test_edit_that_creates_negative_intermediate_rejected(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        """
        GIVEN BUY 10 (Jan) and SELL 10 (Mar)
        WHEN the BUY is edited down to 5
        THEN the edit is rejected
        """
        holding = holding_factory()
        buy = transaction_factory(
            holding.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("10"), txn_date=date(2024, 1, 1)
        )
        transaction_factory(
            holding.holding_id, TransactionAction.SELL, Decimal("10"), Decimal("12"), txn_date=date(2024, 3, 1)
        )

        with pytest.raises(SellExceedsHoldingsError):
            ledger_service.edit_transaction(buy.txn_id, TransactionUpdate(quantity=Decimal("5")))

        assert ledger_service.get_transaction(buy.txn_id).quantity == Decimal("10")

    def test_edit_valid_change(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        holding = holding_factory()
        buy = transaction_factory(holding.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("10"))

        updated = ledger_service.edit_transaction(
            buy.txn_id, TransactionUpdate(quantity=Decimal("12"), notes="corrected")
        )

        assert updated.quantity == Decimal("12")
        assert updated.notes == "corrected"
        assert ledger_service.get_position(holding.holding_id).quantity == Decimal("12")

    def test_delete_buy_backing_a_sell_rejected(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        holding = holding_factory()
        buy = transaction_factory(
            holding.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("10"), txn_date=date(2024, 1, 1)
        )
        transaction_factory(
            holding.holding_id, TransactionAction.SELL, Decimal("4"), Decimal("12"), txn_date=date(2024, 2, 1)
        )

        with pytest.raises(SellExceedsHoldingsError):
            ledger_service.delete_transaction(buy.txn_id)

    def test_delete_and_restore(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        """
        GIVEN two BUY transactions
        WHEN one is deleted and then restored
        THEN the position drops and recovers
        """
        holding = holding_factory()
        transaction_factory(holding.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("10"))
        second = transaction_factory(holding.holding_id, TransactionAction.BUY, Decimal("5"), Decimal("10"))

        ledger_service.delete_transaction(second.txn_id)
        assert ledger_service.get_position(holding.holding_id).quantity == Decimal("10")
        with pytest.raises(NotFoundError):
            ledger_service.get_transaction(second.txn_id)

        ledger_service.restore_transaction(second.txn_id)
        assert ledger_service.get_position(holding.holding_id).quantity == Decimal("15")

    def test_restore_sell_that_no_longer_fits_rejected(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        holding = holding_factory()
        transaction_factory(
            holding.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("10"), txn_date=date(2024, 1, 1)
        )
        sell = transaction_factory(
            holding.holding_id, TransactionAction.SELL, Decimal("6"), Decimal("10"), txn_date=date(2024, 2, 1)
        )
        ledger_service.delete_transaction(sell.txn_id)
        transaction_factory(
            holding.holding_id, TransactionAction.SELL, Decimal("6"), Decimal("10"), txn_date=date(2024, 3, 1)
        )

        with pytest.raises(SellExceedsHoldingsError):
            ledger_service.restore_transaction(sell.txn_id)


# =============================================================================
# POSITIONS
# =============================================================================


class TestPositions:
    """Tests for derived position state."""

    def test_position_average_cost(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        holding = holding_factory()
        transaction_factory(holding.holding_id, TransactionAction.BUY, Decimal("6"), Decimal("95.20"), Decimal("7.50"))

        position = ledger_service.get_position(holding.holding_id)

        assert position.quantity == Decimal("6")
        assert position.cost_basis == Decimal("578.70")
        assert position.average_cost == Decimal("96.45")

    def test_position_fifo(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        holding = holding_factory()
        transaction_factory(
            holding.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("10"), txn_date=date(2024, 1, 1)
        )
        transaction_factory(
            holding.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("20"), txn_date=date(2024, 2, 1)
        )

        position = ledger_service.get_position(holding.holding_id, method=CostBasisMethod.FIFO)

        assert len(position.lots) == 2
        assert position.cost_basis == Decimal("300")

    def test_positions_for_skips_snapshot_holdings(
        self,
        ledger_service: LedgerService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        etf = holding_factory()
        cash = holding_factory(holding_type=HoldingType.CASH)
        transaction_factory(etf.holding_id, TransactionAction.BUY, Decimal("3"), Decimal("10"))

        positions = ledger_service.positions_for([etf, cash])

        assert list(positions) == [etf.holding_id]
        assert positions[etf.holding_id].quantity == Decimal("3")
