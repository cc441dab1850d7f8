"""Yahoo Finance price provider (stocks and ETFs) via yfinance."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from finboard.core.exceptions import UpstreamUnavailableError
from finboard.domain.models import Currency, HoldingType, PriceSource
from finboard.domain.views import Quote

logger = logging.getLogger(__name__)


# Lazy import so tests can patch before import
def _get_yf():
    import yfinance as yf
    return yf


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


class YahooFinanceProvider:
    """Fetches listed security prices from Yahoo Finance."""

    def supports(self, holding_type: HoldingType) -> bool:
        return holding_type in (HoldingType.STOCK, HoldingType.ETF)

    def fetch_price(self, symbol: str, currency_hint: Optional[Currency] = None) -> Quote:
        """
        Fetch the latest price for a Yahoo symbol (e.g. VAS.AX, AIR.NZ, AAPL).

        Price prefers currentPrice, then regularMarketPrice; change is measured
        against previousClose.
        """
        yf = _get_yf()
        try:
            info = yf.Ticker(symbol).info
        except Exception as exc:
            raise UpstreamUnavailableError("yahoo", f"{symbol}: {exc}") from exc

        if not isinstance(info, dict):
            raise UpstreamUnavailableError("yahoo", f"{symbol}: no quote data")

        price = _to_decimal(info.get("currentPrice"))
        if price is None:
            price = _to_decimal(info.get("regularMarketPrice"))
        if price is None:
            raise UpstreamUnavailableError("yahoo", f"{symbol}: no price available")

        prev_close = _to_decimal(
            info.get("previousClose") or info.get("regularMarketPreviousClose")
        )
        change_absolute = price - prev_close if prev_close else None
        change_percent = (change_absolute / prev_close * 100) if prev_close else None

        currency = currency_hint or Currency.USD
        reported = (info.get("currency") or "").upper()
        if reported in Currency.__members__:
            currency = Currency(reported)

        return Quote(
            symbol=symbol,
            price=price,
            currency=currency,
            source=PriceSource.YAHOO,
            change_percent=change_percent,
            change_absolute=change_absolute,
        )
