"""Snapshot and contribution service for snapshot-based holdings."""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from finboard.core.exceptions import ValidationError, NotFoundError, DuplicateSnapshotError
from finboard.core.timezone import utc_now
from finboard.domain.models import Snapshot, Contribution, Currency, Holding, HoldingType
from finboard.repositories.protocols import HoldingRepository, SnapshotRepository

logger = logging.getLogger(__name__)


@dataclass
class SnapshotCreate:
    """Input data for recording a balance snapshot."""

    holding_id: str
    snapshot_date: date
    balance: Decimal
    currency: Optional[Currency] = None
    notes: Optional[str] = None


@dataclass
class SnapshotUpdate:
    snapshot_date: Optional[date] = None
    balance: Optional[Decimal] = None
    currency: Optional[Currency] = None
    notes: Optional[str] = None


@dataclass
class ContributionUpsert:
    """Employer/employee contributions into a super holding for one date."""

    holding_id: str
    contribution_date: date
    employer_contrib: Decimal = Decimal("0")
    employee_contrib: Decimal = Decimal("0")
    notes: Optional[str] = None


class SnapshotService:
    """Service for balance snapshots of super, cash and debt holdings."""

    def __init__(self, holding_repo: HoldingRepository, snapshot_repo: SnapshotRepository):
        self._holding_repo = holding_repo
        self._snapshot_repo = snapshot_repo

    def create_snapshot(self, data: SnapshotCreate) -> Snapshot:
        """Record a balance; a second live snapshot on the same date is a conflict."""
        holding = self._require_snapshot_holding(data.holding_id)
        if data.balance is None:
            raise ValidationError("Balance is required", field="balance")
        if self._snapshot_repo.get_for_date(holding.holding_id, data.snapshot_date):
            raise DuplicateSnapshotError(holding.holding_id, data.snapshot_date.isoformat())

        snapshot = Snapshot(
            snapshot_id=str(uuid.uuid4()),
            holding_id=holding.holding_id,
            snapshot_date=data.snapshot_date,
            balance=data.balance,
            currency=Currency(data.currency) if data.currency else holding.currency,
            notes=data.notes,
            created_at=utc_now(),
        )
        return self._snapshot_repo.create(snapshot)

    def get_snapshot(self, snapshot_id: str) -> Snapshot:
        snapshot = self._snapshot_repo.get_by_id(snapshot_id)
        if not snapshot:
            raise NotFoundError("Snapshot", snapshot_id)
        return snapshot

    def find_snapshot(self, holding_id: str, snapshot_date: date) -> Optional[Snapshot]:
        return self._snapshot_repo.get_for_date(holding_id, snapshot_date)

    def list_snapshots(self, holding_id: str) -> list[Snapshot]:
        self._get_holding(holding_id)
        return self._snapshot_repo.list_by_holding(holding_id)

    def update_snapshot(self, snapshot_id: str, patch: SnapshotUpdate) -> Snapshot:
        """Edit a snapshot; moving it onto a date that already has one is a conflict."""
        snapshot = self.get_snapshot(snapshot_id)
        if patch.snapshot_date is not None and patch.snapshot_date != snapshot.snapshot_date:
            clash = self._snapshot_repo.get_for_date(snapshot.holding_id, patch.snapshot_date)
            if clash and clash.snapshot_id != snapshot.snapshot_id:
                raise DuplicateSnapshotError(snapshot.holding_id, patch.snapshot_date.isoformat())
            snapshot.snapshot_date = patch.snapshot_date
        if patch.balance is not None:
            snapshot.balance = patch.balance
        if patch.currency is not None:
            snapshot.currency = Currency(patch.currency)
        if patch.notes is not None:
            snapshot.notes = patch.notes
        return self._snapshot_repo.update(snapshot)

    def delete_snapshot(self, snapshot_id: str) -> None:
        snapshot = self.get_snapshot(snapshot_id)
        snapshot.deleted_at = utc_now()
        self._snapshot_repo.update(snapshot)

    def restore_snapshot(self, snapshot_id: str) -> Snapshot:
        """Undo a soft delete unless a live snapshot now occupies the same date."""
        snapshot = self._snapshot_repo.get_by_id(snapshot_id, include_deleted=True)
        if not snapshot:
            raise NotFoundError("Snapshot", snapshot_id)
        if not snapshot.is_deleted:
            return snapshot
        if self._snapshot_repo.get_for_date(snapshot.holding_id, snapshot.snapshot_date):
            raise DuplicateSnapshotError(snapshot.holding_id, snapshot.snapshot_date.isoformat())
        snapshot.deleted_at = None
        return self._snapshot_repo.update(snapshot)

    # Contributions

    def upsert_contribution(self, data: ContributionUpsert) -> Contribution:
        """Create or replace the contribution recorded for a super holding on a date."""
        holding = self._get_holding(data.holding_id)
        if holding.holding_type != HoldingType.SUPER:
            raise ValidationError("Contributions can only be recorded for super holdings", field="holding_id")
        if data.employer_contrib < 0 or data.employee_contrib < 0:
            raise ValidationError("Contributions cannot be negative", field="employer_contrib")

        existing = self._snapshot_repo.get_contribution(holding.holding_id, data.contribution_date)
        if existing:
            existing.employer_contrib = data.employer_contrib
            existing.employee_contrib = data.employee_contrib
            if data.notes is not None:
                existing.notes = data.notes
            return self._snapshot_repo.update_contribution(existing)

        return self._snapshot_repo.create_contribution(
            Contribution(
                contribution_id=str(uuid.uuid4()),
                holding_id=holding.holding_id,
                contribution_date=data.contribution_date,
                employer_contrib=data.employer_contrib,
                employee_contrib=data.employee_contrib,
                notes=data.notes,
                created_at=utc_now(),
            )
        )

    def list_contributions(self, holding_id: str) -> list[Contribution]:
        self._get_holding(holding_id)
        return self._snapshot_repo.list_contributions([holding_id])

    def _get_holding(self, holding_id: str) -> Holding:
        holding = self._holding_repo.get_by_id(holding_id)
        if not holding:
            raise NotFoundError("Holding", holding_id)
        return holding

    def _require_snapshot_holding(self, holding_id: str) -> Holding:
        holding = self._get_holding(holding_id)
        if holding.is_tradeable:
            raise ValidationError(
                f"{holding.holding_type.value} holdings are valued from transactions, not snapshots",
                field="holding_id",
            )
        return holding
