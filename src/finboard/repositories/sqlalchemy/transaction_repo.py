"""SQLAlchemy implementation of TransactionRepository."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from finboard.domain.models import Transaction, TransactionAction
from finboard.repositories.sqlalchemy.filters import active
from finboard.repositories.sqlalchemy.orm_models import TransactionORM


class SqlAlchemyTransactionRepository:
    """SQLAlchemy-backed transaction repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction, assigning the next global insertion sequence (deleted rows included)."""
        next_sequence = (
            self._db.query(func.coalesce(func.max(TransactionORM.sequence), 0)).scalar() + 1
        )
        orm_txn = TransactionORM(
            txn_id=transaction.txn_id,
            holding_id=transaction.holding_id,
            txn_date=transaction.txn_date,
            action=transaction.action,
            quantity=transaction.quantity,
            unit_price=transaction.unit_price,
            fees=transaction.fees,
            currency=transaction.currency,
            notes=transaction.notes,
            sequence=next_sequence,
            created_at=transaction.created_at or datetime.utcnow(),
        )
        self._db.add(orm_txn)
        self._db.commit()
        self._db.refresh(orm_txn)
        return self._to_domain(orm_txn)

    def get_by_id(self, txn_id: str, include_deleted: bool = False) -> Optional[Transaction]:
        """Retrieve transaction by ID."""
        query = self._db.query(TransactionORM).filter(TransactionORM.txn_id == txn_id)
        if not include_deleted:
            query = query.filter(active(TransactionORM))
        orm_txn = query.first()
        return self._to_domain(orm_txn) if orm_txn else None

    def update(self, transaction: Transaction) -> Transaction:
        """Update an existing transaction (including soft delete/restore)."""
        orm_txn = self._db.query(TransactionORM).filter(
            TransactionORM.txn_id == transaction.txn_id
        ).first()
        if not orm_txn:
            raise ValueError(f"Transaction not found: {transaction.txn_id}")

        orm_txn.txn_date = transaction.txn_date
        orm_txn.action = transaction.action
        orm_txn.quantity = transaction.quantity
        orm_txn.unit_price = transaction.unit_price
        orm_txn.fees = transaction.fees
        orm_txn.currency = transaction.currency
        orm_txn.notes = transaction.notes
        orm_txn.deleted_at = transaction.deleted_at
        orm_txn.updated_at = datetime.utcnow()

        self._db.commit()
        self._db.refresh(orm_txn)
        return self._to_domain(orm_txn)

    def list_by_holding(self, holding_id: str) -> list[Transaction]:
        """List live transactions for a holding in replay order."""
        return self.query(holding_ids=[holding_id])

    def query(
        self,
        holding_ids: Optional[list[str]] = None,
        actions: Optional[list[TransactionAction]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """Query live transactions with filters, ordered by (txn_date, sequence)."""
        query = self._db.query(TransactionORM)

        conditions = [active(TransactionORM)]
        if holding_ids:
            conditions.append(TransactionORM.holding_id.in_(holding_ids))
        if actions:
            conditions.append(TransactionORM.action.in_(actions))
        if start_date:
            conditions.append(TransactionORM.txn_date >= start_date)
        if end_date:
            conditions.append(TransactionORM.txn_date <= end_date)

        query = query.filter(and_(*conditions))
        query = query.order_by(TransactionORM.txn_date, TransactionORM.sequence)
        return [self._to_domain(t) for t in query.all()]

    def find_duplicate(
        self,
        holding_id: str,
        txn_date: date,
        action: TransactionAction,
        quantity: Decimal,
        unit_price: Decimal,
    ) -> Optional[Transaction]:
        """Find a live transaction with the same natural key."""
        candidates = (
            self._db.query(TransactionORM)
            .filter(
                TransactionORM.holding_id == holding_id,
                TransactionORM.txn_date == txn_date,
                TransactionORM.action == action,
                active(TransactionORM),
            )
            .all()
        )
        # Numeric columns round-trip through SQLite as floats; compare as Decimals
        for orm_txn in candidates:
            txn = self._to_domain(orm_txn)
            if txn.quantity == quantity and txn.unit_price == unit_price:
                return txn
        return None

    @staticmethod
    def _to_domain(orm: TransactionORM) -> Transaction:
        """Convert ORM model to domain model."""
        return Transaction(
            txn_id=orm.txn_id,
            holding_id=orm.holding_id,
            txn_date=orm.txn_date,
            action=orm.action,
            quantity=Decimal(str(orm.quantity)),
            unit_price=Decimal(str(orm.unit_price)) if orm.unit_price is not None else Decimal("0"),
            fees=Decimal(str(orm.fees)) if orm.fees is not None else Decimal("0"),
            currency=orm.currency,
            notes=orm.notes,
            sequence=orm.sequence,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            deleted_at=orm.deleted_at,
        )
