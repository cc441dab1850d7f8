"""CoinGecko price provider (crypto) over HTTP."""

import logging
from decimal import Decimal
from typing import Optional

import httpx

from finboard.core.exceptions import UpstreamUnavailableError
from finboard.domain.models import Currency, HoldingType, PriceSource
from finboard.domain.views import Quote

logger = logging.getLogger(__name__)

# CoinGecko identifies coins by slug rather than ticker
SYMBOL_TO_COINGECKO_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "USDT": "tether",
    "BNB": "binancecoin",
    "SOL": "solana",
    "XRP": "ripple",
    "USDC": "usd-coin",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "AVAX": "avalanche-2",
    "DOT": "polkadot",
    "TRX": "tron",
    "LINK": "chainlink",
    "MATIC": "matic-network",
    "TON": "the-open-network",
    "SHIB": "shiba-inu",
    "DAI": "dai",
    "LTC": "litecoin",
    "BCH": "bitcoin-cash",
    "ATOM": "cosmos",
    "UNI": "uniswap",
    "XLM": "stellar",
    "XMR": "monero",
    "ETC": "ethereum-classic",
    "FIL": "filecoin",
    "HBAR": "hedera-hashgraph",
    "APT": "aptos",
    "ARB": "arbitrum",
    "OP": "optimism",
    "NEAR": "near",
    "AAVE": "aave",
    "ALGO": "algorand",
}


def coingecko_id(symbol: str) -> Optional[str]:
    return SYMBOL_TO_COINGECKO_ID.get(symbol.strip().upper())


class CoinGeckoProvider:
    """Fetches USD crypto prices from the CoinGecko simple/price endpoint."""

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def supports(self, holding_type: HoldingType) -> bool:
        return holding_type == HoldingType.CRYPTO

    def fetch_price(self, symbol: str, currency_hint: Optional[Currency] = None) -> Quote:
        symbol = symbol.strip().upper()
        coin_id = coingecko_id(symbol)
        if coin_id is None:
            raise UpstreamUnavailableError("coingecko", f"unknown cryptocurrency symbol {symbol}")

        params = {"ids": coin_id, "vs_currencies": "usd", "include_24hr_change": "true"}
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(
                    f"{self._base_url}/simple/price",
                    params=params,
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailableError("coingecko", f"request timed out for {symbol}") from exc
        except httpx.RequestError as exc:
            raise UpstreamUnavailableError("coingecko", f"connection failed for {symbol}: {exc}") from exc

        if response.status_code == 429:
            raise UpstreamUnavailableError("coingecko", "rate limit exceeded")
        if response.status_code != 200:
            raise UpstreamUnavailableError("coingecko", f"HTTP {response.status_code} for {symbol}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError("coingecko", f"invalid JSON for {symbol}") from exc

        coin = payload.get(coin_id) if isinstance(payload, dict) else None
        if not coin or coin.get("usd") is None:
            raise UpstreamUnavailableError("coingecko", f"no price data for {symbol}")

        price = Decimal(str(coin["usd"]))
        change_percent = coin.get("usd_24h_change")
        change_percent = Decimal(str(change_percent)) if change_percent is not None else None
        change_absolute = None
        if change_percent is not None:
            # Derive the absolute move from the 24h percentage
            previous = price / (1 + change_percent / 100)
            change_absolute = price - previous

        return Quote(
            symbol=symbol,
            price=price,
            currency=Currency.USD,
            source=PriceSource.COINGECKO,
            change_percent=change_percent,
            change_absolute=change_absolute,
        )
