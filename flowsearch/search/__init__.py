"""Natural-language search pipeline."""

from flowsearch.search.models import (
    EntityCounts,
    EntityKind,
    ParsedMatch,
    ParsedResultSet,
    SearchMetadata,
    SearchResult,
    SerializedEntities,
)
from flowsearch.search.orchestrator import SearchOrchestrator
from flowsearch.search.prompts import SEARCH_PROMPT_VERSION, PromptBuilder
from flowsearch.search.protocols import EntityStore
from flowsearch.search.response_parser import ResponseParser
from flowsearch.search.result_builder import ResultBuilder
from flowsearch.search.serializer import EntitySerializer
from flowsearch.search.service import SearchService
from flowsearch.search.validator import QueryValidator

__all__ = [
    "SEARCH_PROMPT_VERSION",
    "EntityCounts",
    "EntityKind",
    "EntitySerializer",
    "EntityStore",
    "ParsedMatch",
    "ParsedResultSet",
    "PromptBuilder",
    "QueryValidator",
    "ResponseParser",
    "ResultBuilder",
    "SearchMetadata",
    "SearchOrchestrator",
    "SearchResult",
    "SearchService",
    "SerializedEntities",
]
