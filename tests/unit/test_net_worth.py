"""
Unit tests for NetWorthService.

Tests cover:
- Net worth across tradeable and snapshot holdings
- Debt handling (debt type and negative balances)
- Missing prices and unconverted currencies
- Dormant holdings
- Month-end history
- Top performers and currency exposure
"""

from datetime import date
from decimal import Decimal
from typing import Callable

from finboard.domain.models import Currency, Holding, HoldingType, TransactionAction
from finboard.services import NetWorthService, PriceService


# =============================================================================
# CURRENT NET WORTH
# =============================================================================


class TestCalculate:
    """Tests for current net worth."""

    def test_assets_minus_debt(
        self,
        net_worth_service: NetWorthService,
        price_service: PriceService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
        snapshot_factory: Callable,
    ):
        """
        GIVEN 10 VAS at 100, 2500 cash and a 400 loan
        WHEN I calculate net worth in AUD
        THEN assets are 3500, debt 400 and net worth 3100
        """
        etf = holding_factory()
        transaction_factory(etf.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("90"))
        price_service.fetch_price(etf)
        cash = holding_factory(holding_type=HoldingType.CASH, name="Everyday")
        snapshot_factory(cash.holding_id, date(2024, 1, 31), Decimal("2500"))
        loan = holding_factory(holding_type=HoldingType.DEBT, name="Car loan")
        snapshot_factory(loan.holding_id, date(2024, 1, 31), Decimal("400"))

        result = net_worth_service.calculate("AUD")

        assert result.total_assets == Decimal("3500")
        assert result.total_debt == Decimal("400")
        assert result.net_worth == Decimal("3100")
        assert [g.holding_type for g in result.breakdown] == [HoldingType.ETF, HoldingType.CASH]
        assert [g.holding_type for g in result.debt_breakdown] == [HoldingType.DEBT]
        assert result.has_stale_data is False
        assert result.unconverted_count == 0

    def test_negative_cash_counts_as_debt(
        self,
        net_worth_service: NetWorthService,
        holding_factory: Callable[..., Holding],
        snapshot_factory: Callable,
    ):
        overdrawn = holding_factory(holding_type=HoldingType.CASH)
        snapshot_factory(overdrawn.holding_id, date(2024, 1, 31), Decimal("-150"))

        result = net_worth_service.calculate("AUD")

        assert result.total_assets == Decimal("0")
        assert result.total_debt == Decimal("150")
        assert result.net_worth == Decimal("-150")

    def test_missing_price_values_holding_at_zero(
        self,
        net_worth_service: NetWorthService,
        price_provider,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        """
        GIVEN a holding with no cached price
        WHEN I calculate without refreshing
        THEN it is valued at zero, flagged, and the provider is not called
        """
        etf = holding_factory()
        transaction_factory(etf.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("90"))

        result = net_worth_service.calculate("AUD")

        value = result.breakdown[0].holdings[0]
        assert value.value == Decimal("0")
        assert value.error == "price unavailable"
        assert result.has_stale_data is True
        assert price_provider.calls == []

    def test_refresh_fetches_prices(
        self,
        net_worth_service: NetWorthService,
        price_provider,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        etf = holding_factory()
        transaction_factory(etf.holding_id, TransactionAction.BUY, Decimal("3"), Decimal("90"))

        result = net_worth_service.calculate("AUD", refresh_prices=True)

        assert result.total_assets == Decimal("300")
        assert price_provider.calls == ["VAS.AX"]

    def test_foreign_holding_converted(
        self,
        net_worth_service: NetWorthService,
        price_service: PriceService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        aapl = holding_factory(holding_type=HoldingType.STOCK, symbol="AAPL", exchange="NASDAQ", currency=Currency.USD)
        transaction_factory(aapl.holding_id, TransactionAction.BUY, Decimal("2"), Decimal("150"))
        price_service.fetch_price(aapl)

        result = net_worth_service.calculate("AUD")

        holding_value = result.breakdown[0].holdings[0]
        assert holding_value.native_value == Decimal("400")
        assert holding_value.value == Decimal("600")
        assert result.rates_used == {"USD/AUD": Decimal("1.50")}

    def test_unconverted_values_excluded(
        self,
        net_worth_service: NetWorthService,
        rate_provider,
        holding_factory: Callable[..., Holding],
        snapshot_factory: Callable,
    ):
        """
        GIVEN an NZD cash balance and no reachable rate source
        WHEN I calculate in AUD
        THEN the NZD balance is excluded and counted as unconverted
        """
        aud = holding_factory(holding_type=HoldingType.CASH, name="AUD cash")
        snapshot_factory(aud.holding_id, date(2024, 1, 31), Decimal("1000"))
        nzd = holding_factory(holding_type=HoldingType.CASH, name="NZD cash", currency=Currency.NZD)
        snapshot_factory(nzd.holding_id, date(2024, 1, 31), Decimal("500"))
        rate_provider.failing = True

        result = net_worth_service.calculate("AUD")

        assert result.total_assets == Decimal("1000")
        assert result.unconverted_count == 1
        assert result.has_stale_data is True

    def test_dormant_holdings_excluded_by_default(
        self,
        net_worth_service: NetWorthService,
        holding_factory: Callable[..., Holding],
        snapshot_factory: Callable,
    ):
        dormant = holding_factory(holding_type=HoldingType.CASH, is_dormant=True)
        snapshot_factory(dormant.holding_id, date(2024, 1, 31), Decimal("700"))

        assert net_worth_service.calculate("AUD").total_assets == Decimal("0")
        assert net_worth_service.calculate("AUD", include_dormant=True).total_assets == Decimal("700")


# =============================================================================
# HISTORY
# =============================================================================


class TestHistory:
    """Tests for month-end net worth history."""

    def test_month_end_quantities_and_carried_balances(
        self,
        net_worth_service: NetWorthService,
        price_service: PriceService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
        snapshot_factory: Callable,
    ):
        """
        GIVEN 10 units bought in January, 5 more in March, and one January cash snapshot
        WHEN I request three months of history ending 2024-03-20
        THEN each point uses the quantity held then and the carried cash balance
        """
        etf = holding_factory()
        transaction_factory(etf.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("90"), txn_date=date(2024, 1, 15))
        transaction_factory(etf.holding_id, TransactionAction.BUY, Decimal("5"), Decimal("90"), txn_date=date(2024, 3, 1))
        price_service.fetch_price(etf)
        cash = holding_factory(holding_type=HoldingType.CASH)
        snapshot_factory(cash.holding_id, date(2024, 1, 31), Decimal("1000"))

        points = net_worth_service.history(months=3, display_currency="AUD", today=date(2024, 3, 20))

        assert [p.month_end for p in points] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 20)]
        assert [p.net_worth for p in points] == [Decimal("2000"), Decimal("2000"), Decimal("2500")]


# =============================================================================
# PERFORMERS AND EXPOSURE
# =============================================================================


class TestPerformers:
    """Tests for gain/loss ranking."""

    def test_gainers_and_losers(
        self,
        net_worth_service: NetWorthService,
        price_service: PriceService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
    ):
        winner = holding_factory(name="VAS", symbol="VAS")
        loser = holding_factory(name="VGS", symbol="VGS")
        transaction_factory(winner.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("90"))
        transaction_factory(loser.holding_id, TransactionAction.BUY, Decimal("10"), Decimal("150"))
        price_service.refresh_prices([winner, loser])

        gainers, losers = net_worth_service.performers(limit=5, display_currency="AUD")

        assert [p.symbol for p in gainers] == ["VAS"]
        assert gainers[0].gain == Decimal("100")
        assert gainers[0].gain_percent == Decimal("11.11")
        assert [p.symbol for p in losers] == ["VGS"]
        assert losers[0].gain_percent == Decimal("-20.00")


class TestCurrencyExposure:
    """Tests for native currency exposure."""

    def test_exposure_shares(
        self,
        net_worth_service: NetWorthService,
        price_service: PriceService,
        holding_factory: Callable[..., Holding],
        transaction_factory: Callable,
        snapshot_factory: Callable,
    ):
        cash = holding_factory(holding_type=HoldingType.CASH)
        snapshot_factory(cash.holding_id, date(2024, 1, 31), Decimal("1000"))
        aapl = holding_factory(holding_type=HoldingType.STOCK, symbol="AAPL", exchange="NASDAQ", currency=Currency.USD)
        transaction_factory(aapl.holding_id, TransactionAction.BUY, Decimal("2"), Decimal("150"))
        price_service.fetch_price(aapl)

        exposure = {e.currency: e for e in net_worth_service.currency_exposure("AUD")}

        assert exposure[Currency.AUD].percent == Decimal("62.50")
        assert exposure[Currency.USD].native_total == Decimal("400")
        assert exposure[Currency.USD].converted_total == Decimal("600")
        assert exposure[Currency.USD].percent == Decimal("37.50")
