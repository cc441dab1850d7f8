"""Upstream price and exchange-rate providers."""

from finboard.providers.market_data_provider import PriceProvider, RateProvider
from finboard.providers.yahoo_provider import YahooFinanceProvider
from finboard.providers.coingecko_provider import CoinGeckoProvider
from finboard.providers.exchange_rate_provider import ExchangeRateApiProvider
from finboard.providers.stub_provider import StubMarketDataProvider
from finboard.providers.retry import call_with_retry

__all__ = [
    "PriceProvider",
    "RateProvider",
    "YahooFinanceProvider",
    "CoinGeckoProvider",
    "ExchangeRateApiProvider",
    "StubMarketDataProvider",
    "call_with_retry",
]
