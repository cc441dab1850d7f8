"""Balance snapshot and superannuation contribution models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from finboard.domain.models.enums import Currency


@dataclass
class Snapshot:
    """Point-in-time balance for a snapshot-based holding (super/cash/debt)."""

    snapshot_id: str
    holding_id: str
    snapshot_date: date
    balance: Decimal
    currency: Currency = Currency.AUD
    notes: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    deleted_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.currency, str):
            self.currency = Currency(self.currency)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass
class Contribution:
    """Employer/employee contributions into a super holding for one snapshot date."""

    contribution_id: str
    holding_id: str
    contribution_date: date
    employer_contrib: Decimal = field(default_factory=lambda: Decimal("0"))
    employee_contrib: Decimal = field(default_factory=lambda: Decimal("0"))
    notes: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    deleted_at: Optional[datetime] = field(default=None)

    @property
    def total(self) -> Decimal:
        return self.employer_contrib + self.employee_contrib

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
