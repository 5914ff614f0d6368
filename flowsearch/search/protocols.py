"""Interfaces the search core expects from the record stores."""

from typing import Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class EntityStore(Protocol[T]):
    """
    Read access to one kind of record, scoped to a user.

    Both calls are point-in-time reads; the search core never writes.
    """

    async def list_for_user(self, user_id: str) -> list[T]:
        """All records owned by ``user_id``, in the store's own order."""
        ...

    async def get_by_id(self, user_id: str, entity_id: str) -> T | None:
        """The record with ``entity_id`` owned by ``user_id``, or None."""
        ...
