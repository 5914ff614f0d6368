"""FlowSearch client: builds the search pipeline and owns its lifecycle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Self

from flowsearch.core.cache import SearchCache
from flowsearch.core.config import FlowSearchConfig, SearchOptions
from flowsearch.llm.factory import LLMClient
from flowsearch.search.orchestrator import SearchOrchestrator
from flowsearch.search.prompts import PromptBuilder
from flowsearch.search.response_parser import ResponseParser
from flowsearch.search.result_builder import ResultBuilder
from flowsearch.search.serializer import EntitySerializer
from flowsearch.search.service import SearchService
from flowsearch.search.validator import QueryValidator

if TYPE_CHECKING:
    from flowsearch.domain.entities import Contact, Deal, Event
    from flowsearch.llm.factory import ModelClient
    from flowsearch.search.models import SearchResult
    from flowsearch.search.protocols import EntityStore

logger = logging.getLogger(__name__)


class FlowSearchClient:
    """
    High-level entry point for natural-language CRM search.

    Creates one ``SearchCache`` (with its sweeper thread), the model client,
    the orchestrator and the payload service. Stores exposing ``on_change``
    (such as ``InMemoryEntityStore``) are wired to ``invalidate_user``; other
    stores must call it themselves when a user's records change.

    Example:
        >>> async with FlowSearchClient(config, deals, contacts, events) as client:
        ...     result = await client.search("user-1", "hot deals closing soon")
        ...     print(result.query_interpretation)
    """

    def __init__(
        self,
        config: FlowSearchConfig | None = None,
        deal_store: EntityStore[Deal] | None = None,
        contact_store: EntityStore[Contact] | None = None,
        event_store: EntityStore[Event] | None = None,
        model_client: ModelClient | None = None,
        start: bool = True,
    ):
        """
        Initialize the client.

        Args:
            config: FlowSearchConfig (loaded from env/.env when omitted)
            deal_store: Deal store
            contact_store: Contact store
            event_store: Event store
            model_client: Model client; an ``LLMClient`` over ``config`` when omitted
            start: Start the cache sweeper right away
        """
        if deal_store is None or contact_store is None or event_store is None:
            raise ValueError("deal_store, contact_store and event_store are required")

        self.config = config or FlowSearchConfig()
        self._owns_model_client = model_client is None
        self.model_client: ModelClient = model_client or LLMClient(self.config)

        self.cache: SearchCache[SearchResult] = SearchCache(
            ttl=self.config.cache_ttl_seconds,
            sweep_interval=self.config.cache_sweep_interval_seconds,
            max_entries=self.config.cache_max_entries,
        )

        self.orchestrator = SearchOrchestrator(
            validator=QueryValidator(self.config.min_query_bytes, self.config.max_query_bytes),
            serializer=EntitySerializer(
                deal_store,
                contact_store,
                event_store,
                thresholds=self.config.thresholds,
                text_max_bytes=self.config.text_field_max_bytes,
            ),
            prompt_builder=PromptBuilder(self.config.thresholds),
            model_client=self.model_client,
            parser=ResponseParser(self.config.max_response_chars),
            result_builder=ResultBuilder(deal_store, contact_store, event_store),
            cache=self.cache,
            limits=self.config.limits,
            default_options=self.config.search_options(),
        )
        self.service = SearchService(self.orchestrator)

        for store in (deal_store, contact_store, event_store):
            on_change = getattr(store, "on_change", None)
            if callable(on_change):
                on_change(self.invalidate_user)

        self._closed = False
        if start:
            self.cache.start()

        logger.info("FlowSearchClient initialized: %r", self.config)

    async def search(
        self,
        user_id: str,
        query: str,
        options: SearchOptions | None = None,
    ) -> SearchResult:
        """Run a search; raises ``SearchError`` subclasses on failure."""
        return await self.orchestrator.search(user_id, query, options)

    async def handle(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Run a search from a payload; never raises."""
        return await self.service.handle(payload)

    def invalidate_user(self, user_id: str) -> int:
        """Drop every cached search of ``user_id``."""
        return self.cache.invalidate_user(user_id)

    def close(self) -> None:
        """Stop the cache sweeper and release the model client (idempotent)."""
        if self._closed:
            return
        self._closed = True

        self.cache.stop()
        self.cache.clear()
        if self._owns_model_client and hasattr(self.model_client, "close"):
            self.model_client.close()
        logger.info("FlowSearchClient closed")

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FlowSearchClient(config={self.config!r}, cache_entries={len(self.cache)})"
