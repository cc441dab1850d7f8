"""CSV import functionality."""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from finboard.core.exceptions import AppError, ValidationError
from finboard.core.timezone import parse_date
from finboard.domain.models import Currency, Holding, HoldingType, TransactionAction
from finboard.domain.views import ImportRowError, ImportSummary
from finboard.services.ledger_service import LedgerService, HoldingCreate, TransactionCreate
from finboard.services.snapshot_service import SnapshotService, SnapshotCreate, ContributionUpsert

logger = logging.getLogger(__name__)

# Expected CSV columns per import type
TRANSACTION_COLUMNS = ["date", "symbol", "action", "quantity", "unit_price", "fees", "currency", "exchange", "notes"]
TRANSACTION_REQUIRED = ["date", "symbol", "action", "quantity", "unit_price"]
SNAPSHOT_COLUMNS = ["date", "fund_name", "balance", "employer_contrib", "employee_contrib", "currency"]
SNAPSHOT_REQUIRED = ["date", "fund_name", "balance"]

STOCK_EXCHANGES = {"ASX", "NZX", "NYSE", "NASDAQ"}
SUFFIX_EXCHANGES = {".AX": "ASX", ".NZ": "NZX"}

SUPER_KEYWORDS = ("super", "retirement", "pension", "kiwisaver")
DEBT_KEYWORDS = ("debt", "loan", "credit", "mortgage", "hecs", "help")


def infer_tradeable_type(symbol: str, exchange: Optional[str]) -> tuple[HoldingType, Optional[str]]:
    """Stock if an exchange is given or the symbol carries an exchange suffix, else crypto."""
    upper = symbol.upper()
    if exchange and exchange.upper() in STOCK_EXCHANGES:
        return HoldingType.STOCK, exchange.upper()
    for suffix, suffix_exchange in SUFFIX_EXCHANGES.items():
        if upper.endswith(suffix):
            return HoldingType.STOCK, exchange.upper() if exchange else suffix_exchange
    return HoldingType.CRYPTO, None


def infer_snapshot_type(fund_name: str) -> HoldingType:
    """Super or debt by fund-name keyword, otherwise cash."""
    lower = fund_name.lower()
    if any(keyword in lower for keyword in SUPER_KEYWORDS):
        return HoldingType.SUPER
    if any(keyword in lower for keyword in DEBT_KEYWORDS):
        return HoldingType.DEBT
    return HoldingType.CASH


@dataclass
class ParsedTransactionRow:
    """A validated transaction row waiting to be applied."""

    row_num: int
    txn_date: date
    symbol: str
    action: TransactionAction
    quantity: Decimal
    unit_price: Decimal
    fees: Decimal
    currency: Optional[Currency]
    exchange: Optional[str]
    notes: Optional[str]


class CsvImporter:
    """
    CSV importer for transactions and balance snapshots.

    Transactions: date, symbol, action, quantity, unit_price, fees, currency, exchange, notes
    Snapshots: date, fund_name, balance, employer_contrib, employee_contrib, currency

    Rows already present (by natural key) are skipped, so re-running the same
    file is a no-op. A bad row is reported and never aborts the batch.
    """

    def __init__(
        self,
        ledger_service: LedgerService,
        snapshot_service: SnapshotService,
        create_holdings: bool = True,
    ):
        self._ledger = ledger_service
        self._snapshots = snapshot_service
        self._create_holdings = create_holdings

    def import_transactions(self, content: str) -> ImportSummary:
        """
        Import ledger transactions for tradeable holdings.

        Every row is parsed first; valid rows are then applied in date order
        (file order within a day) so the outcome does not depend on how the
        file is sorted. Errors keep their original row numbers.
        """
        rows = self._read_rows(content, TRANSACTION_REQUIRED)
        summary = ImportSummary(total=len(rows))
        holding_cache: dict[str, Holding] = {}

        parsed: list[ParsedTransactionRow] = []
        for row_num, row in enumerate(rows, start=2):  # Start at 2 (header is row 1)
            try:
                parsed.append(self._parse_transaction_row(row_num, row))
            except AppError as e:
                self._record_error(summary, row_num, e.message)

        for item in sorted(parsed, key=lambda p: (p.txn_date, p.row_num)):
            try:
                if self._apply_transaction_row(item, holding_cache, summary):
                    summary.imported += 1
                else:
                    summary.skipped += 1
            except AppError as e:
                self._record_error(summary, item.row_num, e.message)

        summary.errors.sort(key=lambda e: e.row)
        self._log_summary("transactions", summary)
        return summary

    def import_snapshots(self, content: str) -> ImportSummary:
        """Import balance snapshots (and super contributions) keyed by fund name."""
        rows = self._read_rows(content, SNAPSHOT_REQUIRED)
        summary = ImportSummary(total=len(rows))
        holding_cache: dict[str, Holding] = {}

        for row_num, row in enumerate(rows, start=2):
            try:
                if self._import_snapshot_row(row, holding_cache, summary):
                    summary.imported += 1
                else:
                    summary.skipped += 1
            except AppError as e:
                self._record_error(summary, row_num, e.message)

        self._log_summary("snapshots", summary)
        return summary

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def _parse_transaction_row(self, row_num: int, row: dict[str, str]) -> ParsedTransactionRow:
        txn_date = parse_date(row.get("date", ""))
        symbol = row.get("symbol", "").strip().upper()
        if not symbol:
            raise ValidationError("symbol is required", field="symbol")

        action_str = row.get("action", "").strip().upper()
        try:
            action = TransactionAction(action_str)
        except ValueError:
            raise ValidationError(f"Invalid action: {action_str or '(blank)'}", field="action")

        quantity = self._parse_decimal(row.get("quantity", ""), "quantity")
        unit_price = self._parse_decimal(row.get("unit_price", ""), "unit_price")
        if quantity is None or quantity <= 0:
            raise ValidationError("quantity must be a positive number", field="quantity")
        if unit_price is None or unit_price < 0:
            raise ValidationError("unit_price must be zero or more", field="unit_price")
        fees = self._parse_decimal(row.get("fees", ""), "fees") or Decimal("0")
        if fees < 0:
            raise ValidationError("fees cannot be negative", field="fees")

        return ParsedTransactionRow(
            row_num=row_num,
            txn_date=txn_date,
            symbol=symbol,
            action=action,
            quantity=quantity,
            unit_price=unit_price,
            fees=fees,
            currency=self._parse_currency(row.get("currency", "")),
            exchange=row.get("exchange", "").strip().upper() or None,
            notes=row.get("notes", "").strip() or None,
        )

    def _apply_transaction_row(
        self,
        item: ParsedTransactionRow,
        holding_cache: dict[str, Holding],
        summary: ImportSummary,
    ) -> bool:
        """Returns False when the row is a duplicate."""
        holding = holding_cache.get(item.symbol)
        if holding is None:
            holding = self._resolve_tradeable(item.symbol, item.exchange, item.currency, summary)
            holding_cache[item.symbol] = holding

        if self._ledger.find_duplicate(
            holding.holding_id, item.txn_date, item.action, item.quantity, item.unit_price
        ):
            return False

        self._ledger.add_transaction(
            TransactionCreate(
                holding_id=holding.holding_id,
                action=item.action,
                quantity=item.quantity,
                unit_price=item.unit_price,
                fees=item.fees,
                txn_date=item.txn_date,
                currency=item.currency,
                notes=item.notes,
            )
        )
        return True

    def _import_snapshot_row(
        self,
        row: dict[str, str],
        holding_cache: dict[str, Holding],
        summary: ImportSummary,
    ) -> bool:
        """Returns False when the row is a duplicate."""
        snapshot_date = parse_date(row.get("date", ""))
        fund_name = row.get("fund_name", "").strip()
        if not fund_name:
            raise ValidationError("fund_name is required", field="fund_name")
        balance = self._parse_decimal(row.get("balance", ""), "balance")
        if balance is None:
            raise ValidationError("balance is required", field="balance")
        employer = self._parse_decimal(row.get("employer_contrib", ""), "employer_contrib")
        employee = self._parse_decimal(row.get("employee_contrib", ""), "employee_contrib")
        currency = self._parse_currency(row.get("currency", ""))

        key = fund_name.lower()
        holding = holding_cache.get(key)
        if holding is None:
            holding = self._resolve_snapshot_holding(fund_name, currency, summary)
            holding_cache[key] = holding

        if self._snapshots.find_snapshot(holding.holding_id, snapshot_date):
            return False

        self._snapshots.create_snapshot(
            SnapshotCreate(
                holding_id=holding.holding_id,
                snapshot_date=snapshot_date,
                balance=balance,
                currency=currency,
            )
        )

        if holding.holding_type == HoldingType.SUPER and (employer is not None or employee is not None):
            self._snapshots.upsert_contribution(
                ContributionUpsert(
                    holding_id=holding.holding_id,
                    contribution_date=snapshot_date,
                    employer_contrib=employer or Decimal("0"),
                    employee_contrib=employee or Decimal("0"),
                )
            )
        return True

    # ------------------------------------------------------------------
    # Holding resolution
    # ------------------------------------------------------------------

    def _resolve_tradeable(
        self,
        symbol: str,
        exchange: Optional[str],
        currency: Optional[Currency],
        summary: ImportSummary,
    ) -> Holding:
        existing = self._ledger.find_holding_by_symbol(symbol)
        if existing:
            return existing
        if not self._create_holdings:
            raise ValidationError(f"No holding found for symbol {symbol}", field="symbol")

        holding_type, holding_exchange = infer_tradeable_type(symbol, exchange)
        holding = self._ledger.create_holding(
            HoldingCreate(
                name=symbol,
                holding_type=holding_type,
                currency=currency or Currency.AUD,
                symbol=symbol,
                exchange=holding_exchange,
            )
        )
        summary.created_holdings.append(holding.holding_id)
        return holding

    def _resolve_snapshot_holding(
        self,
        fund_name: str,
        currency: Optional[Currency],
        summary: ImportSummary,
    ) -> Holding:
        existing = self._ledger.find_holding_by_name(fund_name)
        if existing:
            if existing.is_tradeable:
                raise ValidationError(
                    f"{fund_name} is a {existing.holding_type.value} holding and cannot take snapshots",
                    field="fund_name",
                )
            return existing
        if not self._create_holdings:
            raise ValidationError(f"No holding found named {fund_name}", field="fund_name")

        holding = self._ledger.create_holding(
            HoldingCreate(
                name=fund_name,
                holding_type=infer_snapshot_type(fund_name),
                currency=currency or Currency.AUD,
            )
        )
        summary.created_holdings.append(holding.holding_id)
        return holding

    # ------------------------------------------------------------------
    # Parsing helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _read_rows(content: str, required: list[str]) -> list[dict[str, str]]:
        """Parse CSV text, rejecting the whole file if required columns are missing."""
        if content and content.startswith("\ufeff"):
            content = content[1:]
        reader = csv.DictReader(io.StringIO(content or ""))
        if not reader.fieldnames:
            raise ValidationError("CSV file is empty", field="file")

        reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
        missing = [column for column in required if column not in reader.fieldnames]
        if missing:
            raise ValidationError(f"Missing required columns: {', '.join(missing)}", field="file")

        rows = []
        for row in reader:
            cleaned = {k: (v or "").strip() for k, v in row.items() if k is not None}
            if any(cleaned.values()):
                rows.append(cleaned)
        return rows

    @staticmethod
    def _parse_decimal(value: str, field: str) -> Optional[Decimal]:
        """Parse a decimal value from string, returning None for empty strings."""
        value = value.replace(",", "").strip() if value else ""
        if not value:
            return None
        try:
            parsed = Decimal(value)
        except InvalidOperation:
            raise ValidationError(f"Invalid number for {field}: {value}", field=field)
        if not parsed.is_finite():
            raise ValidationError(f"Invalid number for {field}: {value}", field=field)
        return parsed

    @staticmethod
    def _parse_currency(value: str) -> Optional[Currency]:
        value = (value or "").strip().upper()
        if not value:
            return None
        try:
            return Currency(value)
        except ValueError:
            raise ValidationError(f"Unsupported currency: {value}", field="currency")

    @staticmethod
    def _record_error(summary: ImportSummary, row_num: int, message: str) -> None:
        logger.warning("Import row %d rejected: %s", row_num, message)
        summary.errors.append(ImportRowError(row=row_num, message=message))

    @staticmethod
    def _log_summary(kind: str, summary: ImportSummary) -> None:
        logger.info(
            "Imported %s: %d of %d rows (%d skipped, %d errors)",
            kind, summary.imported, summary.total, summary.skipped, len(summary.errors),
        )
