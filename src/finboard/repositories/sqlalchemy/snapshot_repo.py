"""SQLAlchemy implementation of SnapshotRepository (snapshots and contributions)."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from finboard.domain.models import Snapshot, Contribution
from finboard.repositories.sqlalchemy.filters import active
from finboard.repositories.sqlalchemy.orm_models import SnapshotORM, ContributionORM


class SqlAlchemySnapshotRepository:
    """SQLAlchemy-backed repository for balance snapshots and super contributions."""

    def __init__(self, db: Session):
        self._db = db

    # Snapshot operations

    def create(self, snapshot: Snapshot) -> Snapshot:
        """Persist a new snapshot."""
        orm_snap = SnapshotORM(
            snapshot_id=snapshot.snapshot_id,
            holding_id=snapshot.holding_id,
            snapshot_date=snapshot.snapshot_date,
            balance=snapshot.balance,
            currency=snapshot.currency,
            notes=snapshot.notes,
            created_at=snapshot.created_at or datetime.utcnow(),
        )
        self._db.add(orm_snap)
        self._db.commit()
        self._db.refresh(orm_snap)
        return self._snapshot_to_domain(orm_snap)

    def get_by_id(self, snapshot_id: str, include_deleted: bool = False) -> Optional[Snapshot]:
        """Retrieve snapshot by ID."""
        query = self._db.query(SnapshotORM).filter(SnapshotORM.snapshot_id == snapshot_id)
        if not include_deleted:
            query = query.filter(active(SnapshotORM))
        orm_snap = query.first()
        return self._snapshot_to_domain(orm_snap) if orm_snap else None

    def get_for_date(self, holding_id: str, snapshot_date: date) -> Optional[Snapshot]:
        """Retrieve the live snapshot for a holding on an exact date."""
        orm_snap = (
            self._db.query(SnapshotORM)
            .filter(
                SnapshotORM.holding_id == holding_id,
                SnapshotORM.snapshot_date == snapshot_date,
                active(SnapshotORM),
            )
            .first()
        )
        return self._snapshot_to_domain(orm_snap) if orm_snap else None

    def update(self, snapshot: Snapshot) -> Snapshot:
        """Update an existing snapshot (including soft delete/restore)."""
        orm_snap = self._db.query(SnapshotORM).filter(
            SnapshotORM.snapshot_id == snapshot.snapshot_id
        ).first()
        if not orm_snap:
            raise ValueError(f"Snapshot not found: {snapshot.snapshot_id}")

        orm_snap.snapshot_date = snapshot.snapshot_date
        orm_snap.balance = snapshot.balance
        orm_snap.currency = snapshot.currency
        orm_snap.notes = snapshot.notes
        orm_snap.deleted_at = snapshot.deleted_at
        orm_snap.updated_at = datetime.utcnow()

        self._db.commit()
        self._db.refresh(orm_snap)
        return self._snapshot_to_domain(orm_snap)

    def list_by_holdings(
        self,
        holding_ids: list[str],
        up_to: Optional[date] = None,
    ) -> list[Snapshot]:
        """List live snapshots for holdings, ordered by (holding, date)."""
        if not holding_ids:
            return []
        query = self._db.query(SnapshotORM).filter(
            SnapshotORM.holding_id.in_(holding_ids),
            active(SnapshotORM),
        )
        if up_to is not None:
            query = query.filter(SnapshotORM.snapshot_date <= up_to)
        query = query.order_by(SnapshotORM.holding_id, SnapshotORM.snapshot_date)
        return [self._snapshot_to_domain(s) for s in query.all()]

    def list_by_holding(self, holding_id: str) -> list[Snapshot]:
        """List live snapshots for one holding, oldest first."""
        return self.list_by_holdings([holding_id])

    # Contribution operations

    def create_contribution(self, contribution: Contribution) -> Contribution:
        """Persist a new contribution."""
        orm_contrib = ContributionORM(
            contribution_id=contribution.contribution_id,
            holding_id=contribution.holding_id,
            contribution_date=contribution.contribution_date,
            employer_contrib=contribution.employer_contrib,
            employee_contrib=contribution.employee_contrib,
            notes=contribution.notes,
            created_at=contribution.created_at or datetime.utcnow(),
        )
        self._db.add(orm_contrib)
        self._db.commit()
        self._db.refresh(orm_contrib)
        return self._contribution_to_domain(orm_contrib)

    def update_contribution(self, contribution: Contribution) -> Contribution:
        """Update an existing contribution."""
        orm_contrib = self._db.query(ContributionORM).filter(
            ContributionORM.contribution_id == contribution.contribution_id
        ).first()
        if not orm_contrib:
            raise ValueError(f"Contribution not found: {contribution.contribution_id}")

        orm_contrib.employer_contrib = contribution.employer_contrib
        orm_contrib.employee_contrib = contribution.employee_contrib
        orm_contrib.notes = contribution.notes
        orm_contrib.deleted_at = contribution.deleted_at
        orm_contrib.updated_at = datetime.utcnow()

        self._db.commit()
        self._db.refresh(orm_contrib)
        return self._contribution_to_domain(orm_contrib)

    def get_contribution(self, holding_id: str, contribution_date: date) -> Optional[Contribution]:
        """Retrieve the live contribution for a holding on an exact date."""
        orm_contrib = (
            self._db.query(ContributionORM)
            .filter(
                ContributionORM.holding_id == holding_id,
                ContributionORM.contribution_date == contribution_date,
                active(ContributionORM),
            )
            .first()
        )
        return self._contribution_to_domain(orm_contrib) if orm_contrib else None

    def list_contributions(self, holding_ids: list[str]) -> list[Contribution]:
        """List live contributions for holdings, oldest first."""
        if not holding_ids:
            return []
        orm_contribs = (
            self._db.query(ContributionORM)
            .filter(ContributionORM.holding_id.in_(holding_ids), active(ContributionORM))
            .order_by(ContributionORM.contribution_date)
            .all()
        )
        return [self._contribution_to_domain(c) for c in orm_contribs]

    @staticmethod
    def _snapshot_to_domain(orm: SnapshotORM) -> Snapshot:
        """Convert ORM snapshot to domain model."""
        return Snapshot(
            snapshot_id=orm.snapshot_id,
            holding_id=orm.holding_id,
            snapshot_date=orm.snapshot_date,
            balance=Decimal(str(orm.balance)),
            currency=orm.currency,
            notes=orm.notes,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            deleted_at=orm.deleted_at,
        )

    @staticmethod
    def _contribution_to_domain(orm: ContributionORM) -> Contribution:
        """Convert ORM contribution to domain model."""
        return Contribution(
            contribution_id=orm.contribution_id,
            holding_id=orm.holding_id,
            contribution_date=orm.contribution_date,
            employer_contrib=Decimal(str(orm.employer_contrib or 0)),
            employee_contrib=Decimal(str(orm.employee_contrib or 0)),
            notes=orm.notes,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            deleted_at=orm.deleted_at,
        )
