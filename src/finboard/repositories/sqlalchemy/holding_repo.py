"""SQLAlchemy implementation of HoldingRepository."""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from finboard.domain.models import Holding, HoldingType
from finboard.repositories.sqlalchemy.filters import active
from finboard.repositories.sqlalchemy.orm_models import HoldingORM


class SqlAlchemyHoldingRepository:
    """SQLAlchemy-backed holding repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, holding: Holding) -> Holding:
        """Persist a new holding."""
        orm_holding = HoldingORM(
            holding_id=holding.holding_id,
            name=holding.name,
            holding_type=holding.holding_type,
            symbol=holding.symbol,
            currency=holding.currency,
            exchange=holding.exchange,
            is_dormant=holding.is_dormant,
            is_active=holding.is_active,
            created_at=holding.created_at or datetime.utcnow(),
        )
        self._db.add(orm_holding)
        self._db.commit()
        self._db.refresh(orm_holding)
        return self._to_domain(orm_holding)

    def get_by_id(self, holding_id: str, include_deleted: bool = False) -> Optional[Holding]:
        """Retrieve holding by ID."""
        query = self._db.query(HoldingORM).filter(HoldingORM.holding_id == holding_id)
        if not include_deleted:
            query = query.filter(active(HoldingORM))
        orm_holding = query.first()
        return self._to_domain(orm_holding) if orm_holding else None

    def get_by_symbol(self, symbol: str) -> Optional[Holding]:
        """Retrieve the oldest live holding trading under a symbol."""
        orm_holding = (
            self._db.query(HoldingORM)
            .filter(func.upper(HoldingORM.symbol) == symbol.upper(), active(HoldingORM))
            .order_by(HoldingORM.created_at)
            .first()
        )
        return self._to_domain(orm_holding) if orm_holding else None

    def get_by_name(self, name: str) -> Optional[Holding]:
        """Retrieve a live holding by case-insensitive name."""
        orm_holding = (
            self._db.query(HoldingORM)
            .filter(func.lower(HoldingORM.name) == name.strip().lower(), active(HoldingORM))
            .order_by(HoldingORM.created_at)
            .first()
        )
        return self._to_domain(orm_holding) if orm_holding else None

    def list_all(
        self,
        include_inactive: bool = True,
        include_dormant: bool = True,
        holding_types: Optional[list[HoldingType]] = None,
    ) -> list[Holding]:
        """List live holdings, ordered by name."""
        query = self._db.query(HoldingORM).filter(active(HoldingORM))
        if not include_inactive:
            query = query.filter(HoldingORM.is_active == True)  # noqa: E712
        if not include_dormant:
            query = query.filter(HoldingORM.is_dormant == False)  # noqa: E712
        if holding_types:
            query = query.filter(HoldingORM.holding_type.in_(holding_types))
        query = query.order_by(HoldingORM.name, HoldingORM.created_at)
        return [self._to_domain(h) for h in query.all()]

    def update(self, holding: Holding) -> Holding:
        """Update an existing holding (including soft delete/restore)."""
        orm_holding = self._db.query(HoldingORM).filter(
            HoldingORM.holding_id == holding.holding_id
        ).first()
        if not orm_holding:
            raise ValueError(f"Holding not found: {holding.holding_id}")

        orm_holding.name = holding.name
        orm_holding.holding_type = holding.holding_type
        orm_holding.symbol = holding.symbol
        orm_holding.currency = holding.currency
        orm_holding.exchange = holding.exchange
        orm_holding.is_dormant = holding.is_dormant
        orm_holding.is_active = holding.is_active
        orm_holding.deleted_at = holding.deleted_at
        orm_holding.updated_at = datetime.utcnow()

        self._db.commit()
        self._db.refresh(orm_holding)
        return self._to_domain(orm_holding)

    @staticmethod
    def _to_domain(orm: HoldingORM) -> Holding:
        """Convert ORM model to domain model."""
        return Holding(
            holding_id=orm.holding_id,
            name=orm.name,
            holding_type=orm.holding_type,
            symbol=orm.symbol,
            currency=orm.currency,
            exchange=orm.exchange,
            is_dormant=orm.is_dormant,
            is_active=orm.is_active,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            deleted_at=orm.deleted_at,
        )
