"""Stub price and rate provider for offline/testing use."""

import random
from decimal import Decimal
from typing import Optional

from finboard.domain.models import Currency, HoldingType, PriceSource
from finboard.domain.views import Quote


# Deterministic fake prices for common symbols: (price, previous close, currency)
_STUB_PRICES: dict[str, tuple[Decimal, Decimal, Currency]] = {
    "VAS.AX": (Decimal("98.40"), Decimal("97.95"), Currency.AUD),
    "VGS.AX": (Decimal("121.10"), Decimal("120.55"), Currency.AUD),
    "BHP.AX": (Decimal("44.80"), Decimal("45.20"), Currency.AUD),
    "AIR.NZ": (Decimal("0.62"), Decimal("0.61"), Currency.NZD),
    "FPH.NZ": (Decimal("27.30"), Decimal("27.10"), Currency.NZD),
    "AAPL": (Decimal("185.50"), Decimal("184.25"), Currency.USD),
    "MSFT": (Decimal("378.25"), Decimal("376.80"), Currency.USD),
    "VTI": (Decimal("252.30"), Decimal("251.80"), Currency.USD),
    "BTC": (Decimal("65000.00"), Decimal("63500.00"), Currency.USD),
    "ETH": (Decimal("3400.00"), Decimal("3350.00"), Currency.USD),
    "SOL": (Decimal("150.00"), Decimal("147.00"), Currency.USD),
}

# Multipliers from the key currency into each other currency
_STUB_RATES: dict[Currency, dict[Currency, Decimal]] = {
    Currency.AUD: {Currency.USD: Decimal("0.65"), Currency.NZD: Decimal("1.08")},
    Currency.USD: {Currency.AUD: Decimal("1.5385"), Currency.NZD: Decimal("1.6615")},
    Currency.NZD: {Currency.AUD: Decimal("0.9259"), Currency.USD: Decimal("0.6019")},
}


class StubMarketDataProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Uses predefined prices for common symbols; generates seeded random prices for unknown symbols.
    """

    def __init__(self, seed: int = 42):
        self._rng = random.Random(seed)

    def supports(self, holding_type: HoldingType) -> bool:
        return holding_type.is_tradeable

    def fetch_price(self, symbol: str, currency_hint: Optional[Currency] = None) -> Quote:
        upper_symbol = symbol.upper()
        if upper_symbol in _STUB_PRICES:
            price, prev_close, currency = _STUB_PRICES[upper_symbol]
        else:
            price = Decimal(str(50 + self._rng.random() * 200)).quantize(Decimal("0.01"))
            change_pct = Decimal(str((self._rng.random() - 0.5) * 0.04))
            prev_close = (price / (1 + change_pct)).quantize(Decimal("0.01"))
            currency = currency_hint or Currency.USD

        change_absolute = price - prev_close
        return Quote(
            symbol=upper_symbol,
            price=price,
            currency=currency,
            source=PriceSource.STUB,
            change_percent=(change_absolute / prev_close * 100).quantize(Decimal("0.0001")),
            change_absolute=change_absolute,
        )

    def fetch_rates(self, base: Currency) -> dict[Currency, Decimal]:
        return dict(_STUB_RATES[base])
