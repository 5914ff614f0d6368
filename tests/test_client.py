"""FlowSearchClient: wiring, invalidation and lifecycle."""

import pytest

from conftest import USER, results_xml
from flowsearch import FlowSearchClient, FlowSearchConfig
from flowsearch.domain import Contact
from flowsearch.llm import LLMClient


@pytest.fixture
def config():
    return FlowSearchConfig(llm_provider="mock", cache_ttl_seconds=120, max_query_bytes=50)


@pytest.fixture
def client(config, deal_store, contact_store, event_store, mock_llm):
    client = FlowSearchClient(
        config,
        deal_store=deal_store,
        contact_store=contact_store,
        event_store=event_store,
        model_client=mock_llm,
        start=False,
    )
    yield client
    client.close()


def test_stores_are_required(config, deal_store):
    with pytest.raises(ValueError):
        FlowSearchClient(config, deal_store=deal_store, start=False)


def test_builds_pipeline_from_config(client, config):
    orchestrator = client.orchestrator

    assert client.cache.ttl == 120
    assert orchestrator.validator.max_bytes == 50
    assert orchestrator.default_options.provider == "mock"
    assert orchestrator.prompt_builder.system_prompt.startswith("You are")
    assert not client.cache.running


async def test_search(client, mock_llm, acme_deal):
    mock_llm.set_next_response(results_xml(deals=[(acme_deal.id, 88, "big")]))

    result = await client.search(USER, "high value deals")

    assert [d["title"] for d in result.deals] == ["Acme Renewal"]
    assert mock_llm.requests[0].options.provider == "mock"


async def test_handle(client):
    response = await client.handle({"user_id": USER, "query": "x" * 51})

    assert response["error"] == {
        "code": "SEARCH_ERROR",
        "message": "Query too long (maximum 50 characters)",
    }


async def test_store_changes_invalidate_cache(client, mock_llm, contact_store):
    await client.search(USER, "at risk contacts")
    assert (await client.search(USER, "at risk contacts")).cached is True

    contact_store.add(Contact(user_id=USER, name="New Person", churn_risk=90))
    result = await client.search(USER, "at risk contacts")

    assert result.cached is False
    assert result.metadata.entities_searched.contacts == 2
    assert mock_llm.call_count == 2


async def test_invalidate_user(client):
    await client.search(USER, "hot deals")

    assert client.invalidate_user(USER) == 1
    assert client.invalidate_user(USER) == 0


async def test_close_is_idempotent(client, mock_llm):
    await client.search(USER, "hot deals")

    client.close()
    client.close()

    assert len(client.cache) == 0
    assert mock_llm.call_count == 1


def test_default_model_client_is_owned(config, deal_store, contact_store, event_store):
    with FlowSearchClient(
        config,
        deal_store=deal_store,
        contact_store=contact_store,
        event_store=event_store,
    ) as client:
        assert isinstance(client.model_client, LLMClient)
        assert client.cache.running

    assert not client.cache.running


async def test_async_context_manager(config, deal_store, contact_store, event_store):
    async with FlowSearchClient(
        config,
        deal_store=deal_store,
        contact_store=contact_store,
        event_store=event_store,
        start=False,
    ) as client:
        result = await client.search(USER, "hot deals")

    assert result.metadata.provider == "mock"
    assert "FlowSearchClient(" in repr(client)
