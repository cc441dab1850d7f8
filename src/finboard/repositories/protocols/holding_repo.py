"""Holding repository protocol."""

from typing import Protocol, Optional

from finboard.domain.models import Holding, HoldingType


class HoldingRepository(Protocol):
    """Interface for holding data access. Reads never return soft-deleted rows unless asked."""

    def create(self, holding: Holding) -> Holding:
        ...

    def get_by_id(self, holding_id: str, include_deleted: bool = False) -> Optional[Holding]:
        ...

    def get_by_symbol(self, symbol: str) -> Optional[Holding]:
        ...

    def get_by_name(self, name: str) -> Optional[Holding]:
        ...

    def list_all(
        self,
        include_inactive: bool = True,
        include_dormant: bool = True,
        holding_types: Optional[list[HoldingType]] = None,
    ) -> list[Holding]:
        ...

    def update(self, holding: Holding) -> Holding:
        ...
