"""ExchangeRate-API rate provider over HTTP."""

import logging
from decimal import Decimal
from typing import Optional

import httpx

from finboard.core.exceptions import UpstreamUnavailableError
from finboard.domain.models import Currency

logger = logging.getLogger(__name__)


class ExchangeRateApiProvider:
    """
    Fetches latest rates for a base currency.

    Uses the keyed v6 endpoint when an API key is configured, otherwise the
    open access endpoint. Both return {"result": "success", <rates>}.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        open_base_url: str = "https://open.er-api.com/v6",
        keyed_base_url: str = "https://v6.exchangerate-api.com/v6",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._api_key = api_key
        self._open_base_url = open_base_url.rstrip("/")
        self._keyed_base_url = keyed_base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _url(self, base: Currency) -> str:
        if self._api_key:
            return f"{self._keyed_base_url}/{self._api_key}/latest/{base.value}"
        return f"{self._open_base_url}/latest/{base.value}"

    def fetch_rates(self, base: Currency) -> dict[Currency, Decimal]:
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(self._url(base))
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailableError("exchange-rate", f"request timed out for {base.value}") from exc
        except httpx.RequestError as exc:
            raise UpstreamUnavailableError("exchange-rate", f"connection failed: {exc}") from exc

        if response.status_code != 200:
            raise UpstreamUnavailableError("exchange-rate", f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError("exchange-rate", "invalid JSON response") from exc

        if payload.get("result") != "success":
            detail = payload.get("error-type") or "unsuccessful response"
            raise UpstreamUnavailableError("exchange-rate", str(detail))

        raw_rates = payload.get("conversion_rates") or payload.get("rates") or {}
        rates: dict[Currency, Decimal] = {}
        for currency in Currency:
            if currency == base:
                continue
            value = raw_rates.get(currency.value)
            if value is not None:
                rates[currency] = Decimal(str(value))
        if not rates:
            raise UpstreamUnavailableError("exchange-rate", f"no supported rates for {base.value}")
        return rates
