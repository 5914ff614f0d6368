"""PromptBuilder and prompt rendering."""

from datetime import date

from flowsearch.core.config import SearchOptions, SearchThresholds
from flowsearch.llm.models import Role
from flowsearch.search.models import SerializedEntities
from flowsearch.search.prompts import (
    SEARCH_PROMPT_VERSION,
    PromptBuilder,
    build_user_message,
    format_entities,
    format_entity,
    search_system_prompt,
)


def test_system_prompt_uses_default_thresholds():
    prompt = search_system_prompt()

    assert '"high value" = value > $50000' in prompt
    assert '"large deals" = value > $100000' in prompt
    assert '"small deals" = value < $10000' in prompt
    assert '"at risk" = churn_risk > 60 OR probability < 30' in prompt
    assert '"hot" = probability > 70 OR health_score > 80' in prompt
    assert "churn_risk > 60 OR health_score < 40 OR sentiment negative" in prompt
    assert "Only include entities with scores >= 40." in prompt
    assert f"Prompt version: {SEARCH_PROMPT_VERSION}" in prompt


def test_system_prompt_follows_custom_thresholds():
    prompt = search_system_prompt(
        SearchThresholds(high_value=75_000, stale_days=14, at_risk_health_score=25)
    )

    assert '"high value" = value > $75000' in prompt
    assert "more than 14 days ago" in prompt
    assert "health_score < 25" in prompt
    assert "health_score < 40" not in prompt


def test_system_prompt_describes_output_grammar():
    prompt = search_system_prompt()

    for tag in ("<results>", "<query_interpretation>", "<deals>", "<contacts>", "<events>"):
        assert tag in prompt
    assert "<id>deal-id-here</id>" in prompt
    assert "value_band" in prompt
    assert "risk_band" in prompt


def test_format_entity_renders_lists_and_missing_values():
    entity = {"id": "d1", "tags": ["vip", "q1"], "contact_name": None, "probability": 60}

    assert format_entity(entity) == "id: d1\ntags: vip, q1\ncontact_name: N/A\nprobability: 60"


def test_format_entities_separates_with_blank_line():
    assert format_entities([{"id": "a"}, {"id": "b"}]) == "id: a\n\nid: b"
    assert format_entities([]) == "None available"


def test_user_message_layout():
    serialized = SerializedEntities(deals=[{"id": "d1", "title": "Acme Renewal"}])

    message = build_user_message("high value deals", serialized, date(2025, 3, 14))

    assert message.startswith(
        '## Search Query\n"high value deals"\n\n## Current Date\n2025-03-14\n'
    )
    assert "### Deals (1 total)\nid: d1\ntitle: Acme Renewal\n" in message
    assert "### Contacts (0 total)\nNone available\n" in message
    assert "### Calendar Events (0 total)\nNone available\n" in message


def test_build_request():
    builder = PromptBuilder()
    options = SearchOptions(provider="ollama", model="mistral:latest", temperature=0.1)

    request = builder.build("hot contacts", SerializedEntities(), "2025-03-14", options)

    assert request.system_prompt == builder.system_prompt
    assert len(request.messages) == 1
    assert request.messages[0].role is Role.USER
    assert '"hot contacts"' in request.messages[0].content
    assert request.options.provider == "ollama"
    assert request.options.model == "mistral:latest"
    assert request.options.temperature == 0.1
    assert request.options.max_tokens is None


def test_build_request_without_options():
    request = PromptBuilder().build("deals", SerializedEntities(), date(2025, 1, 2))

    assert request.options.provider is None
    assert "2025-01-02" in request.messages[0].content
