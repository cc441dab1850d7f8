"""CSV export functionality."""

import csv
import io
from typing import Optional

from finboard.domain.models import HoldingType, SNAPSHOT_TYPES
from finboard.services.ledger_service import LedgerService
from finboard.services.snapshot_service import SnapshotService
from finboard.csv.importer import TRANSACTION_COLUMNS, SNAPSHOT_COLUMNS

HOLDING_COLUMNS = ["name", "symbol", "type", "currency", "exchange", "is_dormant", "created_at"]


class CsvExporter:
    """
    CSV exporter for ledger transactions, balance snapshots and holdings.

    Transaction and snapshot output uses the import formats, so an export can
    be re-imported as-is. The holdings export is a backup listing.
    """

    def __init__(self, ledger_service: LedgerService, snapshot_service: SnapshotService):
        self._ledger = ledger_service
        self._snapshots = snapshot_service

    def export_transactions(self, holding_ids: Optional[list[str]] = None) -> str:
        """
        Export live transactions as CSV text.

        Args:
            holding_ids: Optional list of holdings to export (None = all)
        """
        holdings = {h.holding_id: h for h in self._ledger.list_holdings()}
        transactions = self._ledger.list_transactions(holding_ids=holding_ids)

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=TRANSACTION_COLUMNS, lineterminator="\n")
        writer.writeheader()
        for txn in transactions:
            holding = holdings.get(txn.holding_id)
            if holding is None:
                continue
            writer.writerow({
                "date": txn.txn_date.isoformat(),
                "symbol": holding.symbol or "",
                "action": txn.action.value,
                "quantity": str(txn.quantity),
                "unit_price": str(txn.unit_price),
                "fees": str(txn.fees),
                "currency": txn.currency.value,
                "exchange": holding.exchange or "",
                "notes": txn.notes or "",
            })
        return buffer.getvalue()

    def export_snapshots(self) -> str:
        """Export live snapshots, with super contributions on the matching date."""
        holdings = self._ledger.list_holdings(holding_types=sorted(SNAPSHOT_TYPES, key=lambda t: t.value))

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=SNAPSHOT_COLUMNS, lineterminator="\n")
        writer.writeheader()
        for holding in holdings:
            contributions = {}
            if holding.holding_type == HoldingType.SUPER:
                contributions = {
                    c.contribution_date: c for c in self._snapshots.list_contributions(holding.holding_id)
                }
            for snap in self._snapshots.list_snapshots(holding.holding_id):
                contribution = contributions.get(snap.snapshot_date)
                writer.writerow({
                    "date": snap.snapshot_date.isoformat(),
                    "fund_name": holding.name,
                    "balance": str(snap.balance),
                    "employer_contrib": str(contribution.employer_contrib) if contribution else "",
                    "employee_contrib": str(contribution.employee_contrib) if contribution else "",
                    "currency": snap.currency.value,
                })
        return buffer.getvalue()

    def holding_records(self) -> list[dict[str, object]]:
        """Live holdings, dormant included, as flat records keyed by HOLDING_COLUMNS."""
        return [
            {
                "name": h.name,
                "symbol": h.symbol,
                "type": h.holding_type.value,
                "currency": h.currency.value,
                "exchange": h.exchange,
                "is_dormant": h.is_dormant,
                "created_at": h.created_at.isoformat() if h.created_at else None,
            }
            for h in self._ledger.list_holdings()
        ]

    def export_holdings(self) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=HOLDING_COLUMNS, lineterminator="\n")
        writer.writeheader()
        for record in self.holding_records():
            writer.writerow({
                **{k: "" if v is None else v for k, v in record.items()},
                "is_dormant": "true" if record["is_dormant"] else "false",
            })
        return buffer.getvalue()
