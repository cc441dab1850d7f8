"""Net worth aggregation across tradeable and snapshot-based holdings."""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from finboard.core.timezone import today_local, utc_now
from finboard.domain.models import Currency, Holding, HoldingType, TRADEABLE_TYPES, SNAPSHOT_TYPES
from finboard.domain.views import (
    HoldingValue,
    AssetTypeBreakdown,
    NetWorthResult,
    HistoryPoint,
    Performer,
    CurrencyExposure,
    PriceResult,
    RateTable,
)
from finboard.services import cost_basis
from finboard.services.currency import CurrencyService, CurrencyLike, convert, parse_currency
from finboard.services.ledger_service import LedgerService
from finboard.services.price_service import PriceService
from finboard.services.snapshot_resolver import SnapshotResolver, month_ends

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
PERCENT = Decimal("0.01")
PRICE_UNAVAILABLE = "price unavailable"


def _pct(numerator: Decimal, denominator: Decimal) -> Optional[Decimal]:
    if denominator == 0:
        return None
    return (numerator / denominator * 100).quantize(PERCENT, rounding=ROUND_HALF_UP)


class NetWorthService:
    """
    Combine live-priced and snapshot-valued holdings into net worth.

    Per-holding values stay in their native currency until aggregation, where
    a single RateTable converts everything so one response never mixes rate
    snapshots.
    """

    def __init__(
        self,
        ledger_service: LedgerService,
        price_service: PriceService,
        snapshot_resolver: SnapshotResolver,
        currency_service: CurrencyService,
    ):
        self._ledger = ledger_service
        self._prices = price_service
        self._snapshots = snapshot_resolver
        self._currency = currency_service

    def calculate(
        self,
        display_currency: CurrencyLike = Currency.AUD,
        include_dormant: bool = False,
        refresh_prices: bool = False,
    ) -> NetWorthResult:
        """Net worth, assets, debt and a per-type breakdown in the display currency."""
        display = parse_currency(display_currency)
        holdings = self._ledger.list_holdings(include_inactive=False, include_dormant=include_dormant)
        values = self._native_values(holdings, refresh_prices)

        table = self._currency.get_rate_table(display, {v.native_currency for v in values})
        result = self._aggregate(values, table, display)
        logger.info(
            "Net worth %s %s across %d holdings (stale=%s)",
            display.value, result.net_worth, len(values), result.has_stale_data,
        )
        return result

    def history(
        self,
        months: int = 12,
        display_currency: CurrencyLike = Currency.AUD,
        include_dormant: bool = False,
        today: Optional[date] = None,
    ) -> list[HistoryPoint]:
        """
        Month-end net worth for the trailing N months, oldest first.

        Tradeables use the quantity held at each month end times the current
        cached price; snapshot holdings carry their latest balance forward.
        """
        display = parse_currency(display_currency)
        today = today or today_local()
        holdings = self._ledger.list_holdings(include_inactive=False, include_dormant=include_dormant)
        tradeables = [h for h in holdings if h.holding_type in TRADEABLE_TYPES]
        snapshot_holdings = [h for h in holdings if h.holding_type in SNAPSHOT_TYPES]

        prices = self._prices.cached_prices(tradeables)
        ledgers = self._ledger.ledgers_for([h.holding_id for h in tradeables]) if tradeables else {}
        series = self._snapshots.monthly_series([h.holding_id for h in snapshot_holdings], months, today)

        currencies = {p.currency for p in prices.values()}
        for resolved in series.values():
            currencies.update(s.currency for s in resolved.values() if s is not None)
        table = self._currency.get_rate_table(display, currencies)

        points: list[HistoryPoint] = []
        for point in month_ends(months, today):
            assets = ZERO
            debt = ZERO
            for holding in tradeables:
                price = prices.get(holding.holding_id)
                if price is None:
                    continue
                quantity = cost_basis.quantity_held(ledgers.get(holding.holding_id, []), as_of=point)
                conversion = convert(quantity * price.price, price.currency, display, table.rates)
                if conversion.is_converted:
                    assets += conversion.amount
            for holding in snapshot_holdings:
                snap = series.get(point, {}).get(holding.holding_id)
                if snap is None:
                    continue
                conversion = convert(snap.balance, snap.currency, display, table.rates)
                if not conversion.is_converted:
                    continue
                if holding.holding_type == HoldingType.DEBT or conversion.amount < 0:
                    debt += abs(conversion.amount)
                else:
                    assets += conversion.amount
            points.append(HistoryPoint(month_end=point, net_worth=assets - debt, total_assets=assets, total_debt=debt))
        return points

    def performers(
        self,
        limit: int = 5,
        display_currency: CurrencyLike = Currency.AUD,
    ) -> tuple[list[Performer], list[Performer]]:
        """Top gainers and losers by unrealized gain percent against cost basis."""
        display = parse_currency(display_currency)
        holdings = self._ledger.list_holdings(include_inactive=False, include_dormant=False)
        tradeables = [h for h in holdings if h.holding_type in TRADEABLE_TYPES]
        prices = self._prices.cached_prices(tradeables)
        positions = self._ledger.positions_for(tradeables)
        table = self._currency.get_rate_table(display, {p.currency for p in prices.values()})

        performers: list[Performer] = []
        for holding in tradeables:
            price = prices.get(holding.holding_id)
            position = positions.get(holding.holding_id)
            if price is None or position is None or position.quantity <= 0:
                continue
            market = convert(position.quantity * price.price, price.currency, display, table.rates)
            cost = convert(position.cost_basis, holding.currency, display, table.rates)
            if not (market.is_converted and cost.is_converted):
                continue
            gain = market.amount - cost.amount
            performers.append(
                Performer(
                    holding_id=holding.holding_id,
                    name=holding.name,
                    symbol=holding.symbol or "",
                    market_value=market.amount,
                    cost_basis=cost.amount,
                    gain=gain,
                    gain_percent=_pct(gain, cost.amount),
                    currency=display,
                )
            )

        ranked = [p for p in performers if p.gain_percent is not None]
        gainers = sorted((p for p in ranked if p.gain >= 0), key=lambda p: p.gain_percent, reverse=True)
        losers = sorted((p for p in ranked if p.gain < 0), key=lambda p: p.gain_percent)
        return gainers[:limit], losers[:limit]

    def currency_exposure(
        self,
        display_currency: CurrencyLike = Currency.AUD,
        include_dormant: bool = False,
    ) -> list[CurrencyExposure]:
        """Gross asset totals per native currency with their share of total assets."""
        result = self.calculate(display_currency, include_dormant=include_dormant)
        native: dict[Currency, Decimal] = defaultdict(lambda: ZERO)
        converted: dict[Currency, Decimal] = defaultdict(lambda: ZERO)
        for group in result.breakdown:
            for value in group.holdings:
                if not value.is_converted or value.value <= 0:
                    continue
                native[value.native_currency] += value.native_value
                converted[value.native_currency] += value.value

        return [
            CurrencyExposure(
                currency=currency,
                native_total=native[currency],
                converted_total=converted[currency],
                percent=_pct(converted[currency], result.total_assets) or ZERO,
            )
            for currency in Currency
            if currency in converted
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _native_values(self, holdings: list[Holding], refresh_prices: bool) -> list[HoldingValue]:
        tradeables = [h for h in holdings if h.holding_type in TRADEABLE_TYPES]
        snapshot_holdings = [h for h in holdings if h.holding_type in SNAPSHOT_TYPES]

        prices = self._load_prices(tradeables, refresh_prices)
        positions = self._ledger.positions_for(tradeables)
        latest = self._snapshots.latest_for_holdings([h.holding_id for h in snapshot_holdings])

        values: list[HoldingValue] = []
        for holding in tradeables:
            position = positions.get(holding.holding_id)
            quantity = position.quantity if position else ZERO
            price = prices.get(holding.holding_id)
            if price is None:
                logger.warning("No price for %s (%s); valuing at zero", holding.symbol, holding.holding_id)
                values.append(
                    HoldingValue(
                        holding_id=holding.holding_id,
                        name=holding.name,
                        holding_type=holding.holding_type,
                        native_currency=holding.currency,
                        native_value=ZERO,
                        value=ZERO,
                        symbol=holding.symbol,
                        quantity=quantity,
                        is_stale=True,
                        error=PRICE_UNAVAILABLE,
                    )
                )
                continue
            values.append(
                HoldingValue(
                    holding_id=holding.holding_id,
                    name=holding.name,
                    holding_type=holding.holding_type,
                    native_currency=price.currency,
                    native_value=quantity * price.price,
                    value=ZERO,
                    symbol=holding.symbol,
                    quantity=quantity,
                    price=price.price,
                    is_stale=price.is_stale,
                    error=price.error,
                )
            )

        for holding in snapshot_holdings:
            snap = latest.get(holding.holding_id)
            values.append(
                HoldingValue(
                    holding_id=holding.holding_id,
                    name=holding.name,
                    holding_type=holding.holding_type,
                    native_currency=snap.currency if snap else holding.currency,
                    native_value=snap.balance if snap else ZERO,
                    value=ZERO,
                    snapshot_date=snap.snapshot_date if snap else None,
                )
            )
        return values

    def _load_prices(self, tradeables: list[Holding], refresh_prices: bool) -> dict[str, PriceResult]:
        if not refresh_prices:
            return self._prices.cached_prices(tradeables)
        return {
            item.holding_id: item.result
            for item in self._prices.refresh_prices(tradeables)
            if item.result is not None
        }

    @staticmethod
    def _aggregate(values: list[HoldingValue], table: RateTable, display: Currency) -> NetWorthResult:
        groups: dict[HoldingType, AssetTypeBreakdown] = {}
        total_assets = ZERO
        total_debt = ZERO
        unconverted = 0
        has_stale = table.has_stale or bool(table.unavailable)

        for value in values:
            conversion = convert(value.native_value, value.native_currency, display, table.rates)
            value.is_converted = conversion.is_converted
            value.value = conversion.amount
            has_stale = has_stale or value.is_stale

            group = groups.setdefault(value.holding_type, AssetTypeBreakdown(holding_type=value.holding_type))
            group.holdings.append(value)
            group.count += 1

            if not conversion.is_converted:
                unconverted += 1
                logger.warning(
                    "Excluding %s %s of %s from totals: no %s/%s rate",
                    value.native_currency.value, value.native_value, value.name,
                    value.native_currency.value, display.value,
                )
                continue

            if value.holding_type == HoldingType.DEBT:
                group.total_value += abs(conversion.amount)
                total_debt += abs(conversion.amount)
            else:
                group.total_value += conversion.amount
                if conversion.amount >= 0:
                    total_assets += conversion.amount
                else:
                    total_debt += abs(conversion.amount)

        ordered = [groups[t] for t in HoldingType if t in groups]
        return NetWorthResult(
            net_worth=total_assets - total_debt,
            total_assets=total_assets,
            total_debt=total_debt,
            display_currency=display,
            calculated_at=utc_now(),
            breakdown=[g for g in ordered if g.holding_type != HoldingType.DEBT],
            debt_breakdown=[g for g in ordered if g.holding_type == HoldingType.DEBT],
            has_stale_data=has_stale or unconverted > 0,
            unconverted_count=unconverted,
            rates_used=table.rates_used(),
        )
