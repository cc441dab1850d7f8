"""Enumerations for domain models."""

from enum import Enum


class HoldingType(str, Enum):
    """Kinds of holdings tracked on the dashboard."""

    STOCK = "stock"
    ETF = "etf"
    CRYPTO = "crypto"
    SUPER = "super"
    CASH = "cash"
    DEBT = "debt"

    @property
    def is_tradeable(self) -> bool:
        """Tradeable holdings are valued from a transaction ledger and a market price."""
        return self in TRADEABLE_TYPES

    @property
    def requires_exchange(self) -> bool:
        return self in (HoldingType.STOCK, HoldingType.ETF)


TRADEABLE_TYPES = frozenset({HoldingType.STOCK, HoldingType.ETF, HoldingType.CRYPTO})
SNAPSHOT_TYPES = frozenset({HoldingType.SUPER, HoldingType.CASH, HoldingType.DEBT})


class Currency(str, Enum):
    """Supported currencies."""

    AUD = "AUD"
    NZD = "NZD"
    USD = "USD"


class TransactionAction(str, Enum):
    """Types of ledger transactions."""

    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    SPLIT = "SPLIT"


class CostBasisMethod(str, Enum):
    """Cost basis calculation methods."""

    AVERAGE = "AVERAGE"  # Running average reduced on sell (default)
    FIFO = "FIFO"  # Explicit lot ledger, oldest lots consumed first


class PriceSource(str, Enum):
    """Where a cached price came from."""

    YAHOO = "yahoo"
    COINGECKO = "coingecko"
    STUB = "stub"


class SaverType(str, Enum):
    """Budget saver kinds."""

    SPENDING = "spending"
    SAVINGS_GOAL = "savings_goal"
    INVESTMENT = "investment"


class PaceStatus(str, Enum):
    """Budget pace classification for a period in progress."""

    UNDER = "under"  # green
    NEAR = "near"  # amber
    OVER = "over"  # red
    SATISFIED = "satisfied"  # fixed item fully paid


class AnomalyType(str, Enum):
    """Rules that flag unusual spending within a period."""

    LARGE_TRANSACTION = "large_transaction"
    CATEGORY_OVERSPEND = "category_overspend"
    DUPLICATE_MERCHANT = "duplicate_merchant"


class AnomalySeverity(str, Enum):
    WARNING = "warning"
    ALERT = "alert"
