"""ResultBuilder: id resolution, hallucination safety and ranking."""

from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import OTHER_USER, USER, FailingStore
from flowsearch.core.exceptions import ResultBuildError
from flowsearch.domain import Contact, Deal, Event
from flowsearch.search.models import ParsedMatch, ParsedResultSet
from flowsearch.search.result_builder import ResultBuilder, is_valid_uuid
from flowsearch.stores import InMemoryEntityStore
from flowsearch.toolkit import FloatContext


def match(entity_id, score=80, reason="matches"):
    return ParsedMatch(entity_id=str(entity_id), score=score, reason=reason)


@pytest.fixture
def builder(deal_store, contact_store, event_store):
    return ResultBuilder(deal_store, contact_store, event_store)


def test_is_valid_uuid():
    assert is_valid_uuid(str(uuid4()))
    assert not is_valid_uuid("deal-123")
    assert not is_valid_uuid("")
    assert not is_valid_uuid(None)


def test_is_valid_uuid_requires_hyphenated_form():
    value = uuid4()
    hexed = value.hex

    assert is_valid_uuid(str(value).upper())
    for mangled in (
        hexed,
        f"{{{value}}}",
        f"urn:uuid:{value}",
        "-".join(hexed),
        f" {value}",
        f"{value}\n",
    ):
        assert not is_valid_uuid(mangled), mangled


async def test_non_canonical_ids_are_dropped(builder, acme_deal):
    hexed = acme_deal.id.hex
    parsed = ParsedResultSet(
        deals=[
            match(hexed),
            match(f"{{{acme_deal.id}}}"),
            match(f"urn:uuid:{acme_deal.id}"),
            match("-".join(hexed)),
        ],
    )

    with FloatContext() as fc:
        result = await builder.build(USER, parsed, "q")

    assert result.deals == []
    assert fc.count_floats("search.build.dropped") == 4


async def test_resolves_matches_to_records(builder, acme_deal):
    parsed = ParsedResultSet(
        deals=[match(acme_deal.id, 88, "high value")],
        interpretation="High value deals",
    )

    result = await builder.build(USER, parsed, "high value deals")

    assert len(result.deals) == 1
    deal = result.deals[0]
    assert deal["id"] == acme_deal.id
    assert deal["title"] == "Acme Renewal"
    assert deal["value"] == Decimal("75000")
    assert deal["search_score"] == 88
    assert deal["search_reason"] == "high value"
    assert "contact" not in deal
    assert result.query_interpretation == "High value deals"
    assert result.query == "high value deals"


async def test_hallucinated_ids_never_surface(builder, acme_deal):
    parsed = ParsedResultSet(
        deals=[match(uuid4(), 99), match("not-a-uuid", 98), match(acme_deal.id, 50)],
    )

    with FloatContext() as fc:
        result = await builder.build(USER, parsed, "q")

    assert [d["id"] for d in result.deals] == [acme_deal.id]
    reasons = sorted(e.data["reason"] for e in fc.get_floats("search.build.dropped"))
    assert reasons == ["invalid_id", "not_found"]


async def test_other_users_records_are_not_resolved(builder, acme_deal):
    parsed = ParsedResultSet(deals=[match(acme_deal.id)])

    result = await builder.build(OTHER_USER, parsed, "q")

    assert result.deals == []


async def test_sort_is_descending_and_stable():
    deals = [Deal(user_id=USER, title=t) for t in ("first", "second", "third")]
    builder = ResultBuilder(
        InMemoryEntityStore[Deal](deals),
        InMemoryEntityStore[Contact](),
        InMemoryEntityStore[Event](),
    )
    parsed = ParsedResultSet(
        deals=[match(deals[0].id, 60), match(deals[1].id, 90), match(deals[2].id, 60)],
    )

    result = await builder.build(USER, parsed, "q")

    assert [d["title"] for d in result.deals] == ["second", "first", "third"]
    assert [d["search_score"] for d in result.deals] == [90, 60, 60]


async def test_duplicate_ids_keep_first_match(builder, acme_contact):
    parsed = ParsedResultSet(
        contacts=[match(acme_contact.id, 70, "first"), match(acme_contact.id, 95, "again")],
    )

    result = await builder.build(USER, parsed, "q")

    assert len(result.contacts) == 1
    assert result.contacts[0]["search_reason"] == "first"


async def test_events_drop_loaded_relations(builder, demo_event):
    result = await builder.build(USER, ParsedResultSet(events=[match(demo_event.id)]), "q")

    event = result.events[0]
    assert "contact" not in event
    assert "deal" not in event
    assert event["contact_id"] == demo_event.contact_id


async def test_empty_matches(builder):
    result = await builder.build(USER, ParsedResultSet(), "q")

    assert (result.deals, result.contacts, result.events) == ([], [], [])
    assert result.query_interpretation == ""


async def test_store_failure_raises(deal_store, event_store, acme_contact):
    builder = ResultBuilder(deal_store, FailingStore(), event_store)

    with pytest.raises(ResultBuildError):
        await builder.build(USER, ParsedResultSet(contacts=[match(acme_contact.id)]), "q")
