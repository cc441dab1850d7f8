"""
Unit tests for CSV import, export and templates.

Tests cover:
- Transaction import with holding auto-creation
- Idempotent re-import (duplicates skipped by natural key)
- Rows applied in date order regardless of file order
- Whole-file rejection for missing columns
- Per-row errors that never abort the batch
- Snapshot import with type inference and super contributions
- Export in the import format
- Holdings backup export
- Template generation
"""

import pytest
from datetime import date
from decimal import Decimal

from finboard.core.exceptions import ValidationError
from finboard.csv import CsvExporter, CsvImporter, CsvTemplateGenerator
from finboard.domain.models import Currency, HoldingType
from finboard.services import LedgerService, SnapshotService


TRANSACTIONS_CSV = """date,symbol,action,quantity,unit_price,fees,currency,exchange,notes
2024-01-15,VAS,BUY,10,95.50,9.50,AUD,ASX,First buy
2024-02-01,VAS,SELL,4,100.00,9.50,AUD,ASX,
2024-03-10,BTC,BUY,0.05,60000,0,USD,,
"""

SNAPSHOTS_CSV = """date,fund_name,balance,employer_contrib,employee_contrib,currency
2024-01-31,Australian Super,85000.00,1150.00,0,AUD
2024-01-31,Savings Account,12000.00,,,AUD
2024-01-31,HECS Debt,-24000.00,,,AUD
"""


# =============================================================================
# TRANSACTION IMPORT
# =============================================================================


class TestImportTransactions:
    """Tests for importing ledger transactions."""

    def test_import_creates_holdings(self, csv_importer: CsvImporter, ledger_service: LedgerService):
        """
        GIVEN a CSV with an ASX ETF and a crypto symbol
        WHEN I import it
        THEN all rows import and both holdings are created with inferred types
        """
        summary = csv_importer.import_transactions(TRANSACTIONS_CSV)

        assert summary.total == 3
        assert summary.imported == 3
        assert summary.errors == []
        assert len(summary.created_holdings) == 2

        vas = ledger_service.find_holding_by_symbol("VAS")
        btc = ledger_service.find_holding_by_symbol("BTC")
        assert vas.holding_type == HoldingType.STOCK
        assert vas.exchange == "ASX"
        assert btc.holding_type == HoldingType.CRYPTO
        assert btc.currency == Currency.USD
        assert ledger_service.get_position(vas.holding_id).quantity == Decimal("6")

    def test_reimport_is_a_no_op(self, csv_importer: CsvImporter, ledger_service: LedgerService):
        csv_importer.import_transactions(TRANSACTIONS_CSV)

        summary = csv_importer.import_transactions(TRANSACTIONS_CSV)

        assert summary.imported == 0
        assert summary.skipped == 3
        assert summary.created_holdings == []
        assert len(ledger_service.list_transactions()) == 3

    def test_rows_applied_in_date_order(self, csv_importer: CsvImporter, ledger_service: LedgerService):
        """
        GIVEN a file listing a SELL ahead of the earlier-dated BUY it draws on
        WHEN I import it twice
        THEN the first run imports both rows and the second skips both
        """
        content = (
            "date,symbol,action,quantity,unit_price\n"
            "2024-02-01,VAS.AX,SELL,4,100\n"
            "2024-01-15,VAS.AX,BUY,10,95.50\n"
        )

        first = csv_importer.import_transactions(content)
        second = csv_importer.import_transactions(content)

        assert (first.imported, first.skipped, first.errors) == (2, 0, [])
        assert (second.imported, second.skipped, second.errors) == (0, 2, [])
        vas = ledger_service.find_holding_by_symbol("VAS.AX")
        assert ledger_service.get_position(vas.holding_id).quantity == Decimal("6")

    def test_missing_required_columns_rejects_file(self, csv_importer: CsvImporter):
        with pytest.raises(ValidationError) as exc_info:
            csv_importer.import_transactions("date,symbol,quantity\n2024-01-15,VAS,10\n")

        assert "action" in exc_info.value.message
        assert "unit_price" in exc_info.value.message

    def test_empty_file_rejected(self, csv_importer: CsvImporter):
        with pytest.raises(ValidationError):
            csv_importer.import_transactions("")

    def test_bad_rows_reported_with_row_numbers(self, csv_importer: CsvImporter):
        """
        GIVEN a CSV mixing valid rows with a bad date, a bad action and a bad quantity
        WHEN I import it
        THEN valid rows import and each bad row is reported against its line
        """
        content = (
            "date,symbol,action,quantity,unit_price,fees,currency,exchange,notes\n"
            "2024-01-15,VAS,BUY,10,95.50,0,AUD,ASX,\n"
            "15/01/2024,VAS,BUY,1,95.50,0,AUD,ASX,\n"
            "2024-01-16,VAS,HOLD,1,95.50,0,AUD,ASX,\n"
            "2024-01-17,VAS,BUY,-1,95.50,0,AUD,ASX,\n"
            "2024-01-18,VAS,BUY,2,96.00,0,AUD,ASX,\n"
        )

        summary = csv_importer.import_transactions(content)

        assert summary.imported == 2
        assert [e.row for e in summary.errors] == [3, 4, 5]
        assert "Invalid action" in summary.errors[1].message

    def test_oversell_row_rejected(self, csv_importer: CsvImporter):
        content = (
            "date,symbol,action,quantity,unit_price\n"
            "2024-01-15,BTC,BUY,1,60000\n"
            "2024-02-15,BTC,SELL,2,65000\n"
        )

        summary = csv_importer.import_transactions(content)

        assert summary.imported == 1
        assert summary.errors[0].row == 3
        assert "exceeds holdings" in summary.errors[0].message

    def test_byte_order_mark_and_header_case(self, csv_importer: CsvImporter):
        content = "\ufeffDate,Symbol,Action,Quantity,Unit_Price\n2024-01-15,ETH,BUY,1,3000\n"

        summary = csv_importer.import_transactions(content)

        assert summary.imported == 1

    def test_unknown_symbol_without_auto_create(
        self,
        ledger_service: LedgerService,
        snapshot_service: SnapshotService,
    ):
        importer = CsvImporter(ledger_service, snapshot_service, create_holdings=False)

        summary = importer.import_transactions(TRANSACTIONS_CSV)

        assert summary.imported == 0
        assert len(summary.errors) == 3


# =============================================================================
# SNAPSHOT IMPORT
# =============================================================================


class TestImportSnapshots:
    """Tests for importing balance snapshots."""

    def test_import_infers_holding_types(
        self,
        csv_importer: CsvImporter,
        ledger_service: LedgerService,
        snapshot_service: SnapshotService,
    ):
        summary = csv_importer.import_snapshots(SNAPSHOTS_CSV)

        assert summary.imported == 3
        types = {h.name: h.holding_type for h in ledger_service.list_holdings()}
        assert types == {
            "Australian Super": HoldingType.SUPER,
            "Savings Account": HoldingType.CASH,
            "HECS Debt": HoldingType.DEBT,
        }

        fund = ledger_service.find_holding_by_name("australian super")
        contributions = snapshot_service.list_contributions(fund.holding_id)
        assert contributions[0].employer_contrib == Decimal("1150")
        assert contributions[0].contribution_date == date(2024, 1, 31)

    def test_duplicate_snapshot_skipped(self, csv_importer: CsvImporter):
        csv_importer.import_snapshots(SNAPSHOTS_CSV)

        summary = csv_importer.import_snapshots(SNAPSHOTS_CSV)

        assert summary.imported == 0
        assert summary.skipped == 3
        assert summary.errors == []

    def test_duplicate_with_new_balance_keeps_first_value(
        self,
        csv_importer: CsvImporter,
        ledger_service: LedgerService,
        snapshot_service: SnapshotService,
    ):
        """
        GIVEN an imported balance of 12000 for Savings Account on 2024-01-31
        WHEN a second file reports 12500 for the same account and date
        THEN the row is skipped, not an error, and the balance stays 12000
        """
        csv_importer.import_snapshots(SNAPSHOTS_CSV)

        summary = csv_importer.import_snapshots(
            "date,fund_name,balance\n2024-01-31,Savings Account,12500.00\n"
        )

        assert (summary.imported, summary.skipped, summary.errors) == (0, 1, [])
        savings = ledger_service.find_holding_by_name("Savings Account")
        assert snapshot_service.find_snapshot(savings.holding_id, date(2024, 1, 31)).balance == Decimal("12000")

    def test_snapshot_for_tradeable_holding_rejected(
        self,
        csv_importer: CsvImporter,
        holding_factory,
    ):
        holding_factory(name="My ETF")
        content = "date,fund_name,balance\n2024-01-31,My ETF,1000\n"

        summary = csv_importer.import_snapshots(content)

        assert summary.imported == 0
        assert summary.errors[0].row == 2

    def test_missing_balance_reported(self, csv_importer: CsvImporter):
        content = "date,fund_name,balance\n2024-01-31,Everyday,\n"

        summary = csv_importer.import_snapshots(content)

        assert summary.errors[0].message == "balance is required"


# =============================================================================
# EXPORT AND TEMPLATES
# =============================================================================


class TestExport:
    """Tests for CSV export."""

    def test_export_transactions_round_trips(
        self,
        csv_importer: CsvImporter,
        csv_exporter: CsvExporter,
    ):
        """
        GIVEN imported transactions
        WHEN I export them and import the export again
        THEN every exported row is recognized as a duplicate
        """
        csv_importer.import_transactions(TRANSACTIONS_CSV)

        exported = csv_exporter.export_transactions()
        summary = csv_importer.import_transactions(exported)

        lines = exported.strip().split("\n")
        assert lines[0] == "date,symbol,action,quantity,unit_price,fees,currency,exchange,notes"
        assert len(lines) == 4
        assert summary.skipped == 3
        assert summary.imported == 0

    def test_export_filtered_by_holding(
        self,
        csv_importer: CsvImporter,
        csv_exporter: CsvExporter,
        ledger_service: LedgerService,
    ):
        csv_importer.import_transactions(TRANSACTIONS_CSV)
        btc = ledger_service.find_holding_by_symbol("BTC")

        exported = csv_exporter.export_transactions(holding_ids=[btc.holding_id])

        rows = exported.strip().split("\n")[1:]
        assert len(rows) == 1
        assert rows[0].startswith("2024-03-10,BTC,BUY")

    def test_export_snapshots_includes_contributions(
        self,
        csv_importer: CsvImporter,
        csv_exporter: CsvExporter,
    ):
        csv_importer.import_snapshots(SNAPSHOTS_CSV)

        exported = csv_exporter.export_snapshots()

        super_row = next(line for line in exported.split("\n") if "Australian Super" in line)
        assert super_row.startswith("2024-01-31,Australian Super,85000")
        assert "1150" in super_row

    def test_export_holdings(self, csv_exporter: CsvExporter, ledger_service: LedgerService, holding_factory):
        """
        GIVEN a live ETF, a dormant cash account and a deleted holding
        WHEN I export holdings
        THEN live holdings are listed, dormant included, with lowercase booleans
        """
        holding_factory(name="Vanguard Australian Shares", symbol="VAS", exchange="ASX")
        holding_factory(holding_type=HoldingType.CASH, name="Old Savings", is_dormant=True)
        gone = holding_factory(holding_type=HoldingType.CASH, name="Closed")
        ledger_service.delete_holding(gone.holding_id)

        exported = csv_exporter.export_holdings()

        lines = exported.strip().split("\n")
        assert lines[0] == "name,symbol,type,currency,exchange,is_dormant,created_at"
        rows = {line.split(",")[0]: line.split(",") for line in lines[1:]}
        assert set(rows) == {"Vanguard Australian Shares", "Old Savings"}
        assert rows["Vanguard Australian Shares"][1:6] == ["VAS", "etf", "AUD", "ASX", "false"]
        assert rows["Old Savings"][1:6] == ["", "cash", "AUD", "", "true"]
        assert rows["Old Savings"][6]

    def test_holding_records_keep_native_values(self, csv_exporter: CsvExporter, holding_factory):
        holding_factory(holding_type=HoldingType.DEBT, name="Car loan")

        records = csv_exporter.holding_records()

        assert records[0]["symbol"] is None
        assert records[0]["is_dormant"] is False
        assert records[0]["type"] == "debt"


class TestTemplates:
    """Tests for CSV templates."""

    def test_transaction_template_imports_cleanly(
        self,
        csv_template_generator: CsvTemplateGenerator,
        csv_importer: CsvImporter,
    ):
        template = csv_template_generator.generate_template("transactions")

        summary = csv_importer.import_transactions(template)

        assert summary.errors == []
        assert summary.imported == 3

    def test_snapshot_template_header(self, csv_template_generator: CsvTemplateGenerator):
        template = csv_template_generator.generate_template("Snapshots")

        assert template.split("\n")[0] == "date,fund_name,balance,employer_contrib,employee_contrib,currency"

    def test_unknown_template_type(self, csv_template_generator: CsvTemplateGenerator):
        with pytest.raises(ValidationError):
            csv_template_generator.generate_template("budgets")
