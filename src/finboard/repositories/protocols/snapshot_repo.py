"""Snapshot repository protocol."""

from datetime import date
from typing import Protocol, Optional

from finboard.domain.models import Snapshot, Contribution


class SnapshotRepository(Protocol):
    """Interface for balance snapshots and super contributions."""

    def create(self, snapshot: Snapshot) -> Snapshot:
        ...

    def get_by_id(self, snapshot_id: str, include_deleted: bool = False) -> Optional[Snapshot]:
        ...

    def get_for_date(self, holding_id: str, snapshot_date: date) -> Optional[Snapshot]:
        ...

    def update(self, snapshot: Snapshot) -> Snapshot:
        ...

    def list_by_holdings(self, holding_ids: list[str], up_to: Optional[date] = None) -> list[Snapshot]:
        ...

    def list_by_holding(self, holding_id: str) -> list[Snapshot]:
        ...

    def create_contribution(self, contribution: Contribution) -> Contribution:
        ...

    def update_contribution(self, contribution: Contribution) -> Contribution:
        ...

    def get_contribution(self, holding_id: str, contribution_date: date) -> Optional[Contribution]:
        ...

    def list_contributions(self, holding_ids: list[str]) -> list[Contribution]:
        ...
