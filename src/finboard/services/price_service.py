"""Price cache service for tradeable holdings."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Iterable, Optional

from finboard.core.exceptions import ValidationError, UpstreamUnavailableError
from finboard.core.timezone import utc_now
from finboard.domain.models import Holding, HoldingType, PriceCacheEntry
from finboard.domain.views import Quote, PriceResult, PriceRefreshItem
from finboard.providers.market_data_provider import PriceProvider
from finboard.providers.retry import call_with_retry
from finboard.repositories.protocols import CacheRepository

logger = logging.getLogger(__name__)

# Exchange code -> ticker suffix used by the price source
EXCHANGE_SUFFIXES = {
    "ASX": ".AX",
    "NZX": ".NZ",
}


def cache_symbol(holding: Holding) -> str:
    """
    Normalized symbol a holding is priced and cached under.

    Crypto symbols are uppercased as-is; stock/etf symbols get the exchange
    suffix (VAS on ASX -> VAS.AX) unless already suffixed.
    """
    if not holding.symbol:
        raise ValidationError(f"Holding {holding.name} has no symbol", field="symbol")
    symbol = holding.symbol.strip().upper()
    if holding.holding_type == HoldingType.CRYPTO:
        return symbol
    suffix = EXCHANGE_SUFFIXES.get((holding.exchange or "").strip().upper())
    if suffix and "." not in symbol:
        return f"{symbol}{suffix}"
    return symbol


class PriceService:
    """
    Latest prices behind a shared TTL cache.

    Stale entries are served flagged rather than blocking; provider calls are
    retried with backoff and, in batch refreshes, bounded by a timeout.
    """

    def __init__(
        self,
        providers: list[PriceProvider],
        cache_repo: CacheRepository,
        ttl_minutes: int = 15,
        fetch_timeout_seconds: float = 10.0,
        max_workers: int = 8,
        max_retries: int = 3,
        retry_initial_delay: float = 1.0,
    ):
        self._providers = providers
        self._cache_repo = cache_repo
        self._ttl_minutes = ttl_minutes
        self._fetch_timeout = fetch_timeout_seconds
        self._max_workers = max_workers
        self._max_retries = max_retries
        self._retry_initial_delay = retry_initial_delay

    def get_cached_price(self, holding: Holding) -> Optional[PriceResult]:
        """Cached price for a holding without touching the network."""
        self._require_priceable(holding)
        entry = self._cache_repo.get_price(cache_symbol(holding))
        if entry is None:
            return None
        return self._to_result(entry, is_stale=entry.is_stale(utc_now(), self._ttl_minutes))

    def cached_prices(self, holdings: Iterable[Holding]) -> dict[str, PriceResult]:
        """Cached prices keyed by holding_id, loaded with a single query."""
        symbols = {h.holding_id: cache_symbol(h) for h in holdings if h.is_tradeable and h.symbol}
        if not symbols:
            return {}
        now = utc_now()
        entries = {e.symbol: e for e in self._cache_repo.list_prices(sorted(set(symbols.values())))}
        results: dict[str, PriceResult] = {}
        for holding_id, symbol in symbols.items():
            entry = entries.get(symbol)
            if entry is not None:
                results[holding_id] = self._to_result(entry, is_stale=entry.is_stale(now, self._ttl_minutes))
        return results

    def fetch_price(self, holding: Holding, force_refresh: bool = False) -> PriceResult:
        """
        Price for one holding.

        Fresh cache wins. Otherwise the provider is called with retry and the
        cache upserted. On failure the last cached price is served stale with
        an error; with nothing cached UpstreamUnavailableError is raised.
        """
        self._require_priceable(holding)
        symbol = cache_symbol(holding)
        cached = self._cache_repo.get_price(symbol)
        if cached and not force_refresh and not cached.is_stale(utc_now(), self._ttl_minutes):
            return self._to_result(cached, is_stale=False)

        provider = self._provider_for(holding)
        try:
            quote = self._fetch_quote(provider, symbol, holding)
        except Exception as exc:
            return self._fallback(symbol, cached, exc)
        return self._store(symbol, quote)

    def refresh_prices(
        self,
        holdings: Iterable[Holding],
        force_refresh: bool = False,
    ) -> list[PriceRefreshItem]:
        """
        Refresh prices for many holdings concurrently.

        Each upstream fetch runs in a worker thread and is bounded by the
        fetch timeout; a slow or failing symbol never fails the batch. Cache
        writes happen here on the calling thread once results are joined.
        """
        items: list[PriceRefreshItem] = []
        pending: dict[str, list[tuple[Holding, PriceRefreshItem]]] = {}
        cached_by_symbol: dict[str, Optional[PriceCacheEntry]] = {}
        now = utc_now()

        for holding in holdings:
            item = PriceRefreshItem(holding_id=holding.holding_id, symbol=holding.symbol or "")
            items.append(item)
            try:
                self._require_priceable(holding)
                symbol = cache_symbol(holding)
            except ValidationError as exc:
                item.error = exc.message
                continue
            item.symbol = symbol

            if symbol not in cached_by_symbol:
                cached_by_symbol[symbol] = self._cache_repo.get_price(symbol)
            cached = cached_by_symbol[symbol]
            if cached and not force_refresh and not cached.is_stale(now, self._ttl_minutes):
                item.result = self._to_result(cached, is_stale=False)
                continue
            pending.setdefault(symbol, []).append((holding, item))

        if not pending:
            return items

        executor = ThreadPoolExecutor(max_workers=max(1, min(self._max_workers, len(pending))))
        try:
            futures = {}
            for symbol, waiting in pending.items():
                holding = waiting[0][0]
                try:
                    provider = self._provider_for(holding)
                except ValidationError as exc:
                    for _, item in waiting:
                        item.error = exc.message
                    continue
                futures[symbol] = executor.submit(self._fetch_quote, provider, symbol, holding)

            deadline = time.monotonic() + self._fetch_timeout
            for symbol, future in futures.items():
                try:
                    quote = future.result(timeout=max(0.0, deadline - time.monotonic()))
                except FuturesTimeoutError:
                    future.cancel()
                    outcome = self._fallback_or_error(
                        symbol, cached_by_symbol.get(symbol), f"timed out after {self._fetch_timeout}s"
                    )
                except Exception as exc:
                    outcome = self._fallback_or_error(symbol, cached_by_symbol.get(symbol), exc)
                else:
                    outcome = self._store(symbol, quote)

                for _, item in pending[symbol]:
                    if isinstance(outcome, PriceResult):
                        item.result = outcome
                        item.error = outcome.error
                    else:
                        item.error = outcome
        finally:
            # Do not wait on fetches that blew the deadline
            executor.shutdown(wait=False, cancel_futures=True)

        failed = sum(1 for item in items if item.result is None)
        logger.info("Refreshed prices for %d holdings (%d without a price)", len(items), failed)
        return items

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch_quote(self, provider: PriceProvider, symbol: str, holding: Holding) -> Quote:
        return call_with_retry(
            lambda: provider.fetch_price(symbol, holding.currency),
            max_attempts=self._max_retries,
            initial_delay=self._retry_initial_delay,
            description=f"price for {symbol}",
        )

    def _store(self, symbol: str, quote: Quote) -> PriceResult:
        entry = self._cache_repo.upsert_price(
            PriceCacheEntry(
                symbol=symbol,
                price=quote.price,
                currency=quote.currency,
                fetched_at=utc_now(),
                source=quote.source,
                change_percent=quote.change_percent,
                change_absolute=quote.change_absolute,
            )
        )
        return self._to_result(entry, is_stale=False)

    def _fallback(self, symbol: str, cached: Optional[PriceCacheEntry], exc) -> PriceResult:
        if cached is None:
            logger.warning("Price fetch for %s failed with nothing cached: %s", symbol, exc)
            raise UpstreamUnavailableError("price", f"no price for {symbol}: {exc}")
        logger.warning(
            "Price fetch for %s failed, serving cached price from %s: %s",
            symbol, cached.fetched_at, exc,
        )
        return self._to_result(cached, is_stale=True, error=str(exc))

    def _fallback_or_error(self, symbol: str, cached: Optional[PriceCacheEntry], exc):
        try:
            return self._fallback(symbol, cached, exc)
        except UpstreamUnavailableError as unavailable:
            return unavailable.message

    def _provider_for(self, holding: Holding) -> PriceProvider:
        for provider in self._providers:
            if provider.supports(holding.holding_type):
                return provider
        raise ValidationError(
            f"No price source configured for {holding.holding_type.value} holdings",
            field="holding_type",
        )

    @staticmethod
    def _require_priceable(holding: Holding) -> None:
        if not holding.is_tradeable:
            raise ValidationError(
                f"{holding.holding_type.value} holdings are valued from snapshots, not prices",
                field="holding_type",
            )
        if not holding.symbol:
            raise ValidationError(f"Holding {holding.name} has no symbol", field="symbol")

    @staticmethod
    def _to_result(entry: PriceCacheEntry, is_stale: bool, error: Optional[str] = None) -> PriceResult:
        return PriceResult(
            symbol=entry.symbol,
            price=entry.price,
            currency=entry.currency,
            fetched_at=entry.fetched_at,
            source=entry.source,
            is_stale=is_stale,
            change_percent=entry.change_percent,
            change_absolute=entry.change_absolute,
            error=error,
        )
