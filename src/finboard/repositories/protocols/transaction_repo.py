"""Transaction repository protocol."""

from datetime import date
from decimal import Decimal
from typing import Protocol, Optional

from finboard.domain.models import Transaction, TransactionAction


class TransactionRepository(Protocol):
    """Interface for transaction (ledger) data access."""

    def create(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction, assigning the next global insertion sequence (deleted rows included)."""
        ...

    def get_by_id(self, txn_id: str, include_deleted: bool = False) -> Optional[Transaction]:
        """Retrieve transaction by ID."""
        ...

    def update(self, transaction: Transaction) -> Transaction:
        """Update an existing transaction."""
        ...

    def list_by_holding(self, holding_id: str) -> list[Transaction]:
        """List live transactions for a holding, ordered by (txn_date, sequence)."""
        ...

    def query(
        self,
        holding_ids: Optional[list[str]] = None,
        actions: Optional[list[TransactionAction]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """Query live transactions with filters."""
        ...

    def find_duplicate(
        self,
        holding_id: str,
        txn_date: date,
        action: TransactionAction,
        quantity: Decimal,
        unit_price: Decimal,
    ) -> Optional[Transaction]:
        """Find a live transaction with the same natural key."""
        ...
