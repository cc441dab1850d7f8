"""Transaction domain model."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from finboard.domain.models.enums import TransactionAction, Currency


@dataclass
class Transaction:
    """
    Ledger entry for a tradeable holding (source of truth for quantity and cost).

    - BUY/SELL: quantity units at unit_price, plus fees
    - SPLIT: quantity is the split ratio (2 means 1 unit becomes 2)
    - DIVIDEND: cash distribution of quantity x unit_price; no effect on units
    Replay order is (txn_date, sequence); sequence is assigned on insert.
    """

    txn_id: str
    holding_id: str
    txn_date: date
    action: TransactionAction
    quantity: Decimal
    unit_price: Decimal = field(default_factory=lambda: Decimal("0"))
    fees: Decimal = field(default_factory=lambda: Decimal("0"))
    currency: Currency = Currency.AUD
    notes: Optional[str] = None
    sequence: int = 0
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    deleted_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.action, str):
            self.action = TransactionAction(self.action)
        if isinstance(self.currency, str):
            self.currency = Currency(self.currency)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def gross_amount(self) -> Decimal:
        """quantity x unit_price, before fees."""
        return self.quantity * self.unit_price

    @property
    def natural_key(self) -> tuple:
        """Identity used to detect duplicate imports."""
        return (
            self.holding_id,
            self.txn_date,
            self.action,
            self.quantity.normalize(),
            self.unit_price.normalize(),
        )
