"""CSV template generation."""

import csv
import io

from finboard.core.exceptions import ValidationError
from finboard.csv.importer import TRANSACTION_COLUMNS, SNAPSHOT_COLUMNS

_EXAMPLE_ROWS = {
    "transactions": [
        {
            "date": "2024-01-15",
            "symbol": "VAS.AX",
            "action": "BUY",
            "quantity": "10",
            "unit_price": "95.50",
            "fees": "9.50",
            "currency": "AUD",
            "exchange": "ASX",
            "notes": "Initial VAS position",
        },
        {
            "date": "2024-02-01",
            "symbol": "VAS.AX",
            "action": "SELL",
            "quantity": "4",
            "unit_price": "100.00",
            "fees": "9.50",
            "currency": "AUD",
            "exchange": "ASX",
            "notes": "Partial sale",
        },
        {
            "date": "2024-03-10",
            "symbol": "BTC",
            "action": "BUY",
            "quantity": "0.05",
            "unit_price": "60000.00",
            "fees": "0",
            "currency": "USD",
            "exchange": "",
            "notes": "",
        },
    ],
    "snapshots": [
        {
            "date": "2024-01-01",
            "fund_name": "Australian Super",
            "balance": "85000.00",
            "employer_contrib": "1150.00",
            "employee_contrib": "0",
            "currency": "AUD",
        },
        {
            "date": "2024-01-01",
            "fund_name": "Savings Account",
            "balance": "12000.00",
            "employer_contrib": "",
            "employee_contrib": "",
            "currency": "AUD",
        },
        {
            "date": "2024-01-01",
            "fund_name": "HECS Debt",
            "balance": "-24000.00",
            "employer_contrib": "",
            "employee_contrib": "",
            "currency": "AUD",
        },
    ],
}

_COLUMNS = {
    "transactions": TRANSACTION_COLUMNS,
    "snapshots": SNAPSHOT_COLUMNS,
}


class CsvTemplateGenerator:
    """Generator for CSV import templates."""

    def available_types(self) -> list[str]:
        return sorted(_COLUMNS)

    def generate_template(self, import_type: str) -> str:
        """
        Generate CSV text with headers and example rows.

        Args:
            import_type: "transactions" or "snapshots"
        """
        key = (import_type or "").strip().lower()
        if key not in _COLUMNS:
            raise ValidationError(
                f"Unknown template type: {import_type} (expected one of {', '.join(self.available_types())})",
                field="type",
            )

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=_COLUMNS[key], lineterminator="\n")
        writer.writeheader()
        for row in _EXAMPLE_ROWS[key]:
            writer.writerow(row)
        return buffer.getvalue()
