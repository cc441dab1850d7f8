"""Soft-delete lifecycle helpers shared by every in-memory read path."""

from typing import Iterable, Protocol, TypeVar


class SoftDeletable(Protocol):
    deleted_at: object


T = TypeVar("T", bound=SoftDeletable)


def is_active(entity: SoftDeletable) -> bool:
    """True when the entity has not been soft-deleted."""
    return entity.deleted_at is None


def active_only(entities: Iterable[T]) -> list[T]:
    """Filter out soft-deleted entities, preserving order."""
    return [e for e in entities if is_active(e)]
