"""View models for cost basis, holding valuation and net worth."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from finboard.domain.models.enums import Currency, HoldingType

ZERO = Decimal("0")


@dataclass
class Lot:
    """Open purchase lot (FIFO method)."""

    acquired_on: date
    quantity: Decimal
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.unit_cost


@dataclass
class CostBasisResult:
    """Derived position after replaying a holding's ledger."""

    quantity: Decimal = ZERO
    cost_basis: Decimal = ZERO
    realized_gain: Decimal = ZERO
    proceeds: Decimal = ZERO
    dividend_income: Decimal = ZERO
    lots: list[Lot] = field(default_factory=list)

    @property
    def average_cost(self) -> Optional[Decimal]:
        if self.quantity > 0:
            return self.cost_basis / self.quantity
        return None


@dataclass
class HoldingValue:
    """One holding's contribution to net worth."""

    holding_id: str
    name: str
    holding_type: HoldingType
    native_currency: Currency
    native_value: Decimal
    value: Decimal
    symbol: Optional[str] = None
    quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None
    snapshot_date: Optional[date] = None
    is_stale: bool = False
    is_converted: bool = True
    error: Optional[str] = None


@dataclass
class AssetTypeBreakdown:
    """Holdings of one type with their converted total."""

    holding_type: HoldingType
    total_value: Decimal = ZERO
    count: int = 0
    holdings: list[HoldingValue] = field(default_factory=list)


@dataclass
class NetWorthResult:
    """Net worth in a single display currency."""

    net_worth: Decimal
    total_assets: Decimal
    total_debt: Decimal
    display_currency: Currency
    calculated_at: datetime
    breakdown: list[AssetTypeBreakdown] = field(default_factory=list)
    debt_breakdown: list[AssetTypeBreakdown] = field(default_factory=list)
    has_stale_data: bool = False
    unconverted_count: int = 0
    rates_used: dict[str, Decimal] = field(default_factory=dict)


@dataclass
class HistoryPoint:
    """Net worth at a month end."""

    month_end: date
    net_worth: Decimal
    total_assets: Decimal
    total_debt: Decimal


@dataclass
class Performer:
    """Unrealized gain of a tradeable holding against its cost basis."""

    holding_id: str
    name: str
    symbol: str
    market_value: Decimal
    cost_basis: Decimal
    gain: Decimal
    gain_percent: Optional[Decimal]
    currency: Currency


@dataclass
class CurrencyExposure:
    """Share of gross assets denominated in one native currency."""

    currency: Currency
    native_total: Decimal
    converted_total: Decimal
    percent: Decimal


@dataclass
class SuperPeriodRow:
    """Super holding balance movement between consecutive months."""

    month: date
    balance: Optional[Decimal]
    employer_contrib: Decimal = ZERO
    employee_contrib: Decimal = ZERO
    investment_return: Optional[Decimal] = None
