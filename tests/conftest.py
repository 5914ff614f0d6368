"""Shared fixtures: in-memory stores, a scripted model, manual clocks."""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
import os

import pytest

from flowsearch.core.cache import SearchCache
from flowsearch.core.config import SearchOptions
from flowsearch.domain import Contact, Deal, Event
from flowsearch.llm.providers.mock_provider import MockLLMProvider
from flowsearch.search.orchestrator import SearchOrchestrator
from flowsearch.search.prompts import PromptBuilder
from flowsearch.search.response_parser import ResponseParser
from flowsearch.search.result_builder import ResultBuilder
from flowsearch.search.serializer import EntitySerializer
from flowsearch.search.validator import QueryValidator
from flowsearch.stores import InMemoryEntityStore
from flowsearch.toolkit.float_controller import FloatController

USER = "user-1"
OTHER_USER = "user-2"
NOW = datetime(2025, 3, 14, 12, 0, 0, tzinfo=UTC)
TODAY = date(2025, 3, 14)


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingStore:
    """Store whose every read raises."""

    def __init__(self, error: Exception | None = None):
        self.error = error or RuntimeError("database unavailable")

    async def list_for_user(self, user_id):
        raise self.error

    async def get_by_id(self, user_id, entity_id):
        raise self.error


def results_xml(deals=(), contacts=(), events=(), interpretation="Looking for matches."):
    """Build a model reply; each item is ``(id, score, reason)``."""

    def section(name, items):
        body = "".join(
            f"<item>\n  <id>{i}</id>\n  <score>{s}</score>\n  <reason>{r}</reason>\n</item>\n"
            for i, s, r in items
        )
        return f"<{name}>\n{body}</{name}>\n"

    return (
        "<results>\n"
        f"<query_interpretation>\n{interpretation}\n</query_interpretation>\n"
        f"{section('deals', deals)}{section('contacts', contacts)}{section('events', events)}"
        "</results>"
    )


@pytest.fixture(autouse=True)
def _reset_floats():
    yield
    FloatController.reset_instance()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep FLOWSEARCH_* variables and stray .env files out of config tests."""
    for name in list(os.environ):
        if name.startswith("FLOWSEARCH_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def acme_contact() -> Contact:
    return Contact(
        user_id=USER,
        name="Sarah Chen",
        email="sarah@acme.test",
        company="Acme",
        health_score=85,
        churn_risk=10,
        sentiment="positive",
        last_contact_at=NOW - timedelta(days=3),
    )


@pytest.fixture
def acme_deal(acme_contact) -> Deal:
    return Deal(
        user_id=USER,
        title="Acme Renewal",
        company="Acme",
        value=Decimal("75000"),
        stage="proposal",
        probability=60,
        expected_close_date=date(2025, 3, 28),
        contact_id=acme_contact.id,
        contact=acme_contact,
        inserted_at=NOW - timedelta(days=20),
    )


@pytest.fixture
def demo_event(acme_contact) -> Event:
    return Event(
        user_id=USER,
        title="Acme demo",
        start_time=NOW + timedelta(days=2),
        end_time=NOW + timedelta(days=2, hours=1),
        type="demo",
        contact_id=acme_contact.id,
        contact=acme_contact,
    )


@pytest.fixture
def deal_store(acme_deal) -> InMemoryEntityStore[Deal]:
    return InMemoryEntityStore[Deal]([acme_deal])


@pytest.fixture
def contact_store(acme_contact) -> InMemoryEntityStore[Contact]:
    return InMemoryEntityStore[Contact]([acme_contact])


@pytest.fixture
def event_store(demo_event) -> InMemoryEntityStore[Event]:
    return InMemoryEntityStore[Event]([demo_event])


@pytest.fixture
def mock_llm() -> MockLLMProvider:
    return MockLLMProvider()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cache(clock) -> SearchCache:
    return SearchCache(ttl=300, sweep_interval=60, clock=clock)


@pytest.fixture
def make_orchestrator(deal_store, contact_store, event_store, mock_llm, cache):
    """Build an orchestrator; keyword arguments replace the default collaborators."""

    def factory(**overrides) -> SearchOrchestrator:
        deals = overrides.pop("deal_store", deal_store)
        contacts = overrides.pop("contact_store", contact_store)
        events = overrides.pop("event_store", event_store)

        parts = {
            "validator": QueryValidator(),
            "serializer": EntitySerializer(deals, contacts, events, clock=lambda: NOW),
            "prompt_builder": PromptBuilder(),
            "model_client": mock_llm,
            "parser": ResponseParser(),
            "result_builder": ResultBuilder(deals, contacts, events),
            "cache": cache,
            "default_options": SearchOptions(
                provider="gemini", model="gemini-2.5-flash-lite", temperature=0.3
            ),
            "today": lambda: TODAY,
        }
        parts.update(overrides)
        return SearchOrchestrator(**parts)

    return factory


@pytest.fixture
def orchestrator(make_orchestrator) -> SearchOrchestrator:
    return make_orchestrator()
