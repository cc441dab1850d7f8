"""Holding domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from finboard.domain.models.enums import HoldingType, Currency


@dataclass
class Holding:
    """
    An asset or liability on the dashboard.

    Tradeable types (stock/etf/crypto) are valued as quantity x price and always
    carry a symbol; stock/etf also carry the listing exchange. Snapshot types
    (super/cash/debt) are valued from periodic balance snapshots.
    """

    holding_id: str
    name: str
    holding_type: HoldingType
    currency: Currency = Currency.AUD
    symbol: Optional[str] = None
    exchange: Optional[str] = None
    is_dormant: bool = False
    is_active: bool = True
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    deleted_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.holding_type, str):
            self.holding_type = HoldingType(self.holding_type)
        if isinstance(self.currency, str):
            self.currency = Currency(self.currency)

    @property
    def is_tradeable(self) -> bool:
        return self.holding_type.is_tradeable

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
