"""Ledger service for holdings and their transaction history."""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from finboard.core.exceptions import ValidationError, NotFoundError, SellExceedsHoldingsError
from finboard.core.timezone import today_local, utc_now
from finboard.domain.models import (
    Holding,
    HoldingType,
    Currency,
    Transaction,
    TransactionAction,
    CostBasisMethod,
)
from finboard.domain.views import CostBasisResult
from finboard.repositories.protocols import HoldingRepository, TransactionRepository
from finboard.services import cost_basis

logger = logging.getLogger(__name__)


@dataclass
class HoldingCreate:
    """Input data for creating a holding."""

    name: str
    holding_type: HoldingType
    currency: Currency = Currency.AUD
    symbol: Optional[str] = None
    exchange: Optional[str] = None
    is_dormant: bool = False
    is_active: bool = True


@dataclass
class HoldingUpdate:
    """Partial update data for editing a holding."""

    name: Optional[str] = None
    symbol: Optional[str] = None
    currency: Optional[Currency] = None
    exchange: Optional[str] = None
    is_dormant: Optional[bool] = None
    is_active: Optional[bool] = None


@dataclass
class TransactionCreate:
    """Input data for creating a transaction."""

    holding_id: str
    action: TransactionAction
    quantity: Decimal
    unit_price: Decimal = Decimal("0")
    fees: Decimal = Decimal("0")
    txn_date: Optional[date] = None
    currency: Optional[Currency] = None
    notes: Optional[str] = None


@dataclass
class TransactionUpdate:
    """Partial update data for editing a transaction."""

    txn_date: Optional[date] = None
    action: Optional[TransactionAction] = None
    quantity: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    fees: Optional[Decimal] = None
    currency: Optional[Currency] = None
    notes: Optional[str] = None


class LedgerService:
    """
    Service for managing holdings and the transaction ledger.

    The ledger is the source of truth for tradeable holdings. Every write that
    changes the ledger (create, edit, delete, restore) replays the full
    resulting history and is rejected if quantity goes negative at any point.
    """

    def __init__(
        self,
        holding_repo: HoldingRepository,
        transaction_repo: TransactionRepository,
    ):
        self._holding_repo = holding_repo
        self._transaction_repo = transaction_repo

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    def create_holding(self, data: HoldingCreate) -> Holding:
        """Create a holding after validating type-specific requirements."""
        holding_type = HoldingType(data.holding_type)
        name = (data.name or "").strip()
        if not name:
            raise ValidationError("Holding name is required", field="name")

        symbol = data.symbol.strip().upper() if data.symbol and data.symbol.strip() else None
        exchange = data.exchange.strip().upper() if data.exchange and data.exchange.strip() else None
        self._validate_holding_shape(holding_type, symbol, exchange)

        holding = Holding(
            holding_id=str(uuid.uuid4()),
            name=name,
            holding_type=holding_type,
            currency=Currency(data.currency),
            symbol=symbol,
            exchange=exchange,
            is_dormant=data.is_dormant,
            is_active=data.is_active,
            created_at=utc_now(),
        )
        created = self._holding_repo.create(holding)
        logger.info("Created %s holding %s (%s)", holding_type.value, created.name, created.holding_id)
        return created

    def get_holding(self, holding_id: str) -> Holding:
        """Get a live holding by ID."""
        holding = self._holding_repo.get_by_id(holding_id)
        if not holding:
            raise NotFoundError("Holding", holding_id)
        return holding

    def list_holdings(
        self,
        include_inactive: bool = True,
        include_dormant: bool = True,
        holding_types: Optional[list[HoldingType]] = None,
    ) -> list[Holding]:
        """List live holdings."""
        return self._holding_repo.list_all(
            include_inactive=include_inactive,
            include_dormant=include_dormant,
            holding_types=holding_types,
        )

    def find_holding_by_symbol(self, symbol: str) -> Optional[Holding]:
        return self._holding_repo.get_by_symbol(symbol)

    def find_holding_by_name(self, name: str) -> Optional[Holding]:
        return self._holding_repo.get_by_name(name)

    def update_holding(self, holding_id: str, patch: HoldingUpdate) -> Holding:
        """Edit a holding; the holding type is immutable."""
        holding = self.get_holding(holding_id)

        if patch.name is not None:
            if not patch.name.strip():
                raise ValidationError("Holding name is required", field="name")
            holding.name = patch.name.strip()
        if patch.symbol is not None:
            holding.symbol = patch.symbol.strip().upper() or None
        if patch.exchange is not None:
            holding.exchange = patch.exchange.strip().upper() or None
        if patch.currency is not None:
            holding.currency = Currency(patch.currency)
        if patch.is_dormant is not None:
            holding.is_dormant = patch.is_dormant
        if patch.is_active is not None:
            holding.is_active = patch.is_active

        self._validate_holding_shape(holding.holding_type, holding.symbol, holding.exchange)
        return self._holding_repo.update(holding)

    def delete_holding(self, holding_id: str) -> None:
        """Soft delete a holding; its ledger and snapshots are kept."""
        holding = self.get_holding(holding_id)
        holding.deleted_at = utc_now()
        self._holding_repo.update(holding)
        logger.info("Soft-deleted holding %s", holding_id)

    def restore_holding(self, holding_id: str) -> Holding:
        """Undo a soft delete."""
        holding = self._holding_repo.get_by_id(holding_id, include_deleted=True)
        if not holding:
            raise NotFoundError("Holding", holding_id)
        if not holding.is_deleted:
            return holding
        holding.deleted_at = None
        return self._holding_repo.update(holding)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def add_transaction(self, data: TransactionCreate) -> Transaction:
        """Add a transaction to a tradeable holding's ledger."""
        holding = self._require_tradeable(data.holding_id)
        self._validate_amounts(data.action, data.quantity, data.unit_price, data.fees)

        existing = self._transaction_repo.list_by_holding(holding.holding_id)
        transaction = Transaction(
            txn_id=str(uuid.uuid4()),
            holding_id=holding.holding_id,
            txn_date=data.txn_date or today_local(),
            action=data.action,
            quantity=data.quantity,
            unit_price=data.unit_price,
            fees=data.fees,
            currency=Currency(data.currency) if data.currency else holding.currency,
            notes=data.notes,
            # Placeholder for the pre-write replay; the repository assigns the stored sequence
            sequence=max((t.sequence for t in existing), default=0) + 1,
            created_at=utc_now(),
        )
        self._ensure_never_negative(holding.holding_id, existing + [transaction])
        return self._transaction_repo.create(transaction)

    def get_transaction(self, txn_id: str) -> Transaction:
        transaction = self._transaction_repo.get_by_id(txn_id)
        if not transaction:
            raise NotFoundError("Transaction", txn_id)
        return transaction

    def edit_transaction(self, txn_id: str, patch: TransactionUpdate) -> Transaction:
        """Edit a transaction; the full edited history must stay non-negative."""
        transaction = self.get_transaction(txn_id)

        updated = replace(
            transaction,
            txn_date=patch.txn_date if patch.txn_date is not None else transaction.txn_date,
            action=TransactionAction(patch.action) if patch.action is not None else transaction.action,
            quantity=patch.quantity if patch.quantity is not None else transaction.quantity,
            unit_price=patch.unit_price if patch.unit_price is not None else transaction.unit_price,
            fees=patch.fees if patch.fees is not None else transaction.fees,
            currency=Currency(patch.currency) if patch.currency is not None else transaction.currency,
            notes=patch.notes if patch.notes is not None else transaction.notes,
        )
        self._validate_amounts(updated.action, updated.quantity, updated.unit_price, updated.fees)

        others = self._others(transaction)
        self._ensure_never_negative(transaction.holding_id, others + [updated])
        return self._transaction_repo.update(updated)

    def delete_transaction(self, txn_id: str) -> None:
        """Soft delete a transaction unless the remaining history would go negative."""
        transaction = self.get_transaction(txn_id)
        self._ensure_never_negative(transaction.holding_id, self._others(transaction))
        transaction.deleted_at = utc_now()
        self._transaction_repo.update(transaction)

    def restore_transaction(self, txn_id: str) -> Transaction:
        """Undo a soft delete; the restored history must stay non-negative."""
        transaction = self._transaction_repo.get_by_id(txn_id, include_deleted=True)
        if not transaction:
            raise NotFoundError("Transaction", txn_id)
        if not transaction.is_deleted:
            return transaction
        restored = replace(transaction, deleted_at=None)
        existing = self._transaction_repo.list_by_holding(transaction.holding_id)
        self._ensure_never_negative(transaction.holding_id, existing + [restored])
        return self._transaction_repo.update(restored)

    def list_transactions(
        self,
        holding_ids: Optional[list[str]] = None,
        actions: Optional[list[TransactionAction]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """Query live transactions in replay order."""
        return self._transaction_repo.query(
            holding_ids=holding_ids,
            actions=actions,
            start_date=start_date,
            end_date=end_date,
        )

    def find_duplicate(
        self,
        holding_id: str,
        txn_date: date,
        action: TransactionAction,
        quantity: Decimal,
        unit_price: Decimal,
    ) -> Optional[Transaction]:
        return self._transaction_repo.find_duplicate(holding_id, txn_date, action, quantity, unit_price)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def get_position(
        self,
        holding_id: str,
        method: CostBasisMethod = CostBasisMethod.AVERAGE,
    ) -> CostBasisResult:
        """Quantity, cost basis and lots for one tradeable holding."""
        holding = self._require_tradeable(holding_id)
        return cost_basis.replay(self._transaction_repo.list_by_holding(holding.holding_id), method)

    def positions_for(
        self,
        holdings: Iterable[Holding],
        method: CostBasisMethod = CostBasisMethod.AVERAGE,
    ) -> dict[str, CostBasisResult]:
        """Replay ledgers for many holdings with a single query."""
        ids = [h.holding_id for h in holdings if h.is_tradeable]
        if not ids:
            return {}
        grouped = self.ledgers_for(ids)
        return {holding_id: cost_basis.replay(grouped.get(holding_id, []), method) for holding_id in ids}

    def ledgers_for(self, holding_ids: list[str]) -> dict[str, list[Transaction]]:
        """Live transactions grouped per holding, each in replay order."""
        grouped: dict[str, list[Transaction]] = defaultdict(list)
        for txn in self._transaction_repo.query(holding_ids=holding_ids):
            grouped[txn.holding_id].append(txn)
        return grouped

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_holding_shape(
        holding_type: HoldingType,
        symbol: Optional[str],
        exchange: Optional[str],
    ) -> None:
        if holding_type.is_tradeable and not symbol:
            raise ValidationError(f"{holding_type.value} holdings require a symbol", field="symbol")
        if holding_type.requires_exchange and not exchange:
            raise ValidationError(f"{holding_type.value} holdings require an exchange", field="exchange")

    def _require_tradeable(self, holding_id: str) -> Holding:
        holding = self.get_holding(holding_id)
        if not holding.is_tradeable:
            raise ValidationError(
                f"Transactions can only be recorded against stock, etf or crypto holdings "
                f"(holding {holding.name} is {holding.holding_type.value})",
                field="holding_id",
            )
        return holding

    @staticmethod
    def _validate_amounts(
        action: TransactionAction,
        quantity: Optional[Decimal],
        unit_price: Optional[Decimal],
        fees: Optional[Decimal],
    ) -> None:
        if quantity is None or quantity <= 0:
            label = "split ratio" if action == TransactionAction.SPLIT else "quantity"
            raise ValidationError(f"{action.value} requires {label} > 0", field="quantity")
        if unit_price is None or unit_price < 0:
            raise ValidationError(f"{action.value} requires unit_price >= 0", field="unit_price")
        if fees is None or fees < 0:
            raise ValidationError("Fees cannot be negative", field="fees")

    def _others(self, transaction: Transaction) -> list[Transaction]:
        return [
            t for t in self._transaction_repo.list_by_holding(transaction.holding_id)
            if t.txn_id != transaction.txn_id
        ]

    @staticmethod
    def _ensure_never_negative(holding_id: str, ledger: list[Transaction]) -> None:
        violation = cost_basis.first_negative_point(ledger)
        if violation is not None:
            txn, shortfall = violation
            logger.warning(
                "Rejected ledger change for holding %s: quantity negative on %s (short %s)",
                holding_id, txn.txn_date, shortfall,
            )
            raise SellExceedsHoldingsError(
                holding_id,
                txn_date=txn.txn_date.isoformat(),
                shortfall=str(shortfall),
            )
