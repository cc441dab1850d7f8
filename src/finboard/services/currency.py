"""Currency conversion over a cached exchange-rate table."""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional, Union

from finboard.core.exceptions import UnsupportedCurrencyPairError, UpstreamUnavailableError
from finboard.core.timezone import utc_now
from finboard.domain.models import Currency, ExchangeRateEntry
from finboard.domain.views import Conversion, RateResult, RateTable
from finboard.providers.market_data_provider import RateProvider
from finboard.providers.retry import call_with_retry
from finboard.repositories.protocols import CacheRepository

logger = logging.getLogger(__name__)

CurrencyLike = Union[Currency, str]
RateMap = Mapping[tuple[Currency, Currency], Decimal]

ONE = Decimal("1")
CENT = Decimal("0.01")


def parse_currency(value: CurrencyLike) -> Currency:
    """Coerce a currency code, rejecting anything outside AUD/NZD/USD."""
    if isinstance(value, Currency):
        return value
    try:
        return Currency((value or "").strip().upper())
    except ValueError:
        raise UnsupportedCurrencyPairError(str(value), str(value))


def validate_pair(from_currency: CurrencyLike, to_currency: CurrencyLike) -> tuple[Currency, Currency]:
    """Validate an ordered pair; both sides must be supported currencies."""
    try:
        return parse_currency(from_currency), parse_currency(to_currency)
    except UnsupportedCurrencyPairError:
        raise UnsupportedCurrencyPairError(str(from_currency), str(to_currency))


def convert(
    amount: Decimal,
    from_currency: Currency,
    to_currency: Currency,
    rates: RateMap,
) -> Conversion:
    """
    Convert amount using a rate table keyed by (from, to).

    Same currency returns the amount untouched. A missing direct pair falls
    back to the inverse (amount / rate). With neither cached the original
    amount comes back in its own currency with is_converted=False; this
    never raises.
    """
    if from_currency == to_currency:
        return Conversion(amount=amount, currency=to_currency, rate=ONE)

    direct = rates.get((from_currency, to_currency))
    if direct is not None:
        return Conversion(amount=amount * direct, currency=to_currency, rate=direct)

    inverse = rates.get((to_currency, from_currency))
    if inverse is not None and inverse != 0:
        return Conversion(amount=amount / inverse, currency=to_currency, rate=ONE / inverse)

    return Conversion(amount=amount, currency=from_currency, rate=None, is_converted=False)


def format_money(amount: Decimal, currency: Currency) -> str:
    """Display helper: 2dp, half-up, with the currency code."""
    rounded = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    return f"{currency.value} {rounded:,.2f}"


class CurrencyService:
    """
    Exchange rates behind a TTL cache.

    A fresh cache entry is served as-is. On a miss or expiry the provider is
    called (with retry) and every returned pair for that base is upserted.
    If the provider fails, the last cached value is served flagged stale.
    Only when nothing was ever cached does the lookup fail.
    """

    def __init__(
        self,
        rate_provider: RateProvider,
        cache_repo: CacheRepository,
        ttl_minutes: int = 60,
        max_retries: int = 3,
        retry_initial_delay: float = 1.0,
    ):
        self._provider = rate_provider
        self._cache_repo = cache_repo
        self._ttl_minutes = ttl_minutes
        self._max_retries = max_retries
        self._retry_initial_delay = retry_initial_delay

    def get_rate(
        self,
        from_currency: CurrencyLike,
        to_currency: CurrencyLike,
        force_refresh: bool = False,
    ) -> RateResult:
        """Return the multiplier converting from_currency into to_currency."""
        source, target = validate_pair(from_currency, to_currency)
        if source == target:
            return RateResult(from_currency=source, to_currency=target, rate=ONE, fetched_at=None)

        now = utc_now()
        cached = self._cache_repo.get_rate(source, target)
        if cached and not force_refresh and not cached.is_stale(now, self._ttl_minutes):
            return self._to_result(cached, is_stale=False)

        try:
            fresh = self._refresh(source, now)
        except Exception as exc:
            if cached:
                logger.warning(
                    "Rate fetch %s/%s failed, serving cached value from %s: %s",
                    source.value, target.value, cached.fetched_at, exc,
                )
                return self._to_result(cached, is_stale=True, error=str(exc))
            raise UpstreamUnavailableError(
                "exchange-rate", f"no rate for {source.value}/{target.value}: {exc}"
            ) from exc

        entry = fresh.get(target)
        if entry is None:
            if cached:
                return self._to_result(cached, is_stale=True, error="pair missing from provider response")
            raise UpstreamUnavailableError("exchange-rate", f"no rate for {source.value}/{target.value}")
        return self._to_result(entry, is_stale=False)

    def get_rate_table(
        self,
        target: CurrencyLike,
        sources: Iterable[CurrencyLike],
        force_refresh: bool = False,
    ) -> RateTable:
        """
        Build one consistent rate snapshot for converting sources into target.

        Unavailable pairs are listed rather than raised; an inverse cached
        entry is used for a pair whose direct lookup failed.
        """
        target_currency = parse_currency(target)
        table = RateTable(target=target_currency)

        for source in sorted({parse_currency(s) for s in sources}):
            if source == target_currency:
                continue
            try:
                result = self.get_rate(source, target_currency, force_refresh=force_refresh)
            except UpstreamUnavailableError as exc:
                inverse = self._cache_repo.get_rate(target_currency, source)
                if inverse is None:
                    logger.warning("No rate available for %s/%s", source.value, target_currency.value)
                    table.unavailable.append(f"{source.value}/{target_currency.value}")
                    continue
                logger.warning(
                    "Using cached inverse rate %s/%s: %s", target_currency.value, source.value, exc,
                )
                table.rates[(target_currency, source)] = inverse.rate
                table.has_stale = table.has_stale or inverse.is_stale(utc_now(), self._ttl_minutes)
                self._track_fetched_at(table, inverse.fetched_at)
                continue

            table.rates[(source, target_currency)] = result.rate
            table.has_stale = table.has_stale or result.is_stale
            self._track_fetched_at(table, result.fetched_at)

        return table

    def convert(
        self,
        amount: Decimal,
        from_currency: CurrencyLike,
        to_currency: CurrencyLike,
    ) -> tuple[Conversion, RateTable]:
        """Convert a single amount, returning the rate snapshot used."""
        source, target = validate_pair(from_currency, to_currency)
        table = self.get_rate_table(target, [source])
        return convert(amount, source, target, table.rates), table

    def list_rates(self, force_refresh: bool = False) -> list[RateResult]:
        """Current rates for every supported ordered pair; unavailable pairs are reported with an error."""
        results: list[RateResult] = []
        for source in Currency:
            for target in Currency:
                if source == target:
                    continue
                try:
                    results.append(self.get_rate(source, target, force_refresh=force_refresh))
                except UpstreamUnavailableError as exc:
                    results.append(
                        RateResult(
                            from_currency=source,
                            to_currency=target,
                            rate=Decimal("0"),
                            fetched_at=None,
                            is_stale=True,
                            error=exc.message,
                        )
                    )
        return results

    def _refresh(self, base: Currency, now) -> dict[Currency, ExchangeRateEntry]:
        rates = call_with_retry(
            lambda: self._provider.fetch_rates(base),
            max_attempts=self._max_retries,
            initial_delay=self._retry_initial_delay,
            description=f"exchange rates for {base.value}",
        )
        stored: dict[Currency, ExchangeRateEntry] = {}
        for quote_currency, rate in rates.items():
            if quote_currency == base:
                continue
            stored[quote_currency] = self._cache_repo.upsert_rate(
                ExchangeRateEntry(
                    from_currency=base,
                    to_currency=quote_currency,
                    rate=rate,
                    fetched_at=now,
                )
            )
        return stored

    @staticmethod
    def _track_fetched_at(table: RateTable, fetched_at) -> None:
        # Oldest timestamp describes the snapshot as a whole
        if fetched_at is not None and (table.fetched_at is None or fetched_at < table.fetched_at):
            table.fetched_at = fetched_at

    @staticmethod
    def _to_result(
        entry: ExchangeRateEntry,
        is_stale: bool,
        error: Optional[str] = None,
    ) -> RateResult:
        return RateResult(
            from_currency=entry.from_currency,
            to_currency=entry.to_currency,
            rate=entry.rate,
            fetched_at=entry.fetched_at,
            is_stale=is_stale,
            error=error,
        )
