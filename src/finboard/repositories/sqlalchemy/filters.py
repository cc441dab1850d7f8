"""Query predicates shared by every repository read path."""

from sqlalchemy import ColumnElement


def active(model) -> ColumnElement[bool]:
    """Rows that have not been soft-deleted."""
    return model.deleted_at.is_(None)
