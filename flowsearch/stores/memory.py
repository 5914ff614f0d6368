"""
In-memory record store.

Holds deals, contacts or events in insertion order and notifies listeners
after every mutation with the affected user id. ``FlowSearchClient`` uses the
listener to drop that user's cached searches.
"""

from collections.abc import Callable, Iterable
import logging
from threading import RLock
from typing import Generic, TypeAlias, TypeVar
from uuid import UUID

from flowsearch.domain.entities import Contact, Deal, Event

logger = logging.getLogger(__name__)

ChangeListener: TypeAlias = Callable[[str], None]

T = TypeVar("T", Deal, Contact, Event)


class InMemoryEntityStore(Generic[T]):
    """
    Thread-safe store for one record kind.

    Implements the ``EntityStore`` read protocol plus ``add``/``update``/``delete``.

    Example:
        >>> deals = InMemoryEntityStore[Deal]()
        >>> deals.on_change(cache.invalidate_user)
        >>> deals.add(Deal(user_id="u1", title="Acme Renewal"))
    """

    def __init__(self, records: Iterable[T] = ()):
        self._records: dict[UUID, T] = {}
        self._listeners: list[ChangeListener] = []
        self._lock = RLock()
        for record in records:
            self._records[record.id] = record

    def on_change(self, listener: ChangeListener) -> None:
        """Call ``listener(user_id)`` after each mutation."""
        with self._lock:
            self._listeners.append(listener)

    async def list_for_user(self, user_id: str) -> list[T]:
        with self._lock:
            return [record for record in self._records.values() if record.user_id == user_id]

    async def get_by_id(self, user_id: str, entity_id: str) -> T | None:
        try:
            key = UUID(str(entity_id))
        except ValueError:
            return None

        with self._lock:
            record = self._records.get(key)
        if record is None or record.user_id != user_id:
            return None
        return record

    def add(self, record: T) -> T:
        """
        Raises:
            ValueError: If a record with the same id exists
        """
        with self._lock:
            if record.id in self._records:
                raise ValueError(f"Record {record.id} already exists")
            self._records[record.id] = record
        self._notify(record.user_id)
        return record

    def update(self, record: T) -> T:
        """
        Replace the stored record with the same id.

        Raises:
            KeyError: If no such record exists
        """
        with self._lock:
            previous = self._records.get(record.id)
            if previous is None:
                raise KeyError(str(record.id))
            self._records[record.id] = record
        if previous.user_id != record.user_id:
            self._notify(previous.user_id)
        self._notify(record.user_id)
        return record

    def delete(self, user_id: str, entity_id: str | UUID) -> bool:
        """Remove a user's record; returns False when there was none."""
        key = entity_id if isinstance(entity_id, UUID) else UUID(str(entity_id))
        with self._lock:
            record = self._records.get(key)
            if record is None or record.user_id != user_id:
                return False
            del self._records[key]
        self._notify(user_id)
        return True

    def _notify(self, user_id: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(user_id)
            except Exception:
                logger.exception("Store change listener failed for user %s", user_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
