"""InMemoryEntityStore: per-user reads and change notification."""

from uuid import uuid4

import pytest

from conftest import OTHER_USER, USER
from flowsearch.domain import Deal
from flowsearch.search.protocols import EntityStore
from flowsearch.stores import InMemoryEntityStore


@pytest.fixture
def store():
    return InMemoryEntityStore[Deal]()


@pytest.fixture
def changes(store):
    seen = []
    store.on_change(seen.append)
    return seen


async def test_reads_are_scoped_to_user(store):
    mine = store.add(Deal(user_id=USER, title="Mine"))
    store.add(Deal(user_id=OTHER_USER, title="Theirs"))

    assert [d.title for d in await store.list_for_user(USER)] == ["Mine"]
    assert await store.get_by_id(USER, str(mine.id)) is mine
    assert await store.get_by_id(OTHER_USER, str(mine.id)) is None


async def test_get_by_id_tolerates_bad_ids(store):
    assert await store.get_by_id(USER, "not-a-uuid") is None
    assert await store.get_by_id(USER, str(uuid4())) is None


async def test_list_keeps_insertion_order(store):
    for title in ("a", "b", "c"):
        store.add(Deal(user_id=USER, title=title))

    assert [d.title for d in await store.list_for_user(USER)] == ["a", "b", "c"]


def test_add_notifies_and_rejects_duplicates(store, changes):
    deal = store.add(Deal(user_id=USER, title="Acme"))

    with pytest.raises(ValueError):
        store.add(deal)

    assert changes == [USER]
    assert len(store) == 1


def test_update_notifies_previous_and_new_owner(store, changes):
    deal = store.add(Deal(user_id=USER, title="Acme"))

    store.update(deal.model_copy(update={"user_id": OTHER_USER}))

    assert changes == [USER, USER, OTHER_USER]


def test_update_missing_record(store):
    with pytest.raises(KeyError):
        store.update(Deal(user_id=USER))


def test_delete(store, changes):
    deal = store.add(Deal(user_id=USER, title="Acme"))

    assert store.delete(OTHER_USER, deal.id) is False
    assert store.delete(USER, str(deal.id)) is True
    assert store.delete(USER, deal.id) is False
    assert changes == [USER, USER]
    assert len(store) == 0


def test_failing_listener_does_not_break_mutation(store, changes):
    def broken(user_id):
        raise RuntimeError("listener down")

    store.on_change(broken)

    store.add(Deal(user_id=USER))

    assert changes == [USER]
    assert len(store) == 1


def test_satisfies_entity_store_protocol(store):
    assert isinstance(store, EntityStore)
