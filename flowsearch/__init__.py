"""
FlowSearch - natural-language search over CRM deals, contacts and events.

Main Features:
- Free-text queries matched by an LLM (Gemini, Ollama, OpenAI)
- Compact, schema-stable record serialization for prompts
- Lenient parsing of the model's XML-style reply
- Hallucinated ids never reach the caller
- Per-user TTL cache with background sweep and invalidation

Quick Start:
    >>> from flowsearch import FlowSearchClient, FlowSearchConfig
    >>> client = FlowSearchClient(FlowSearchConfig(), deals, contacts, events)
    >>> result = await client.search("user-1", "high value deals closing this month")

Architecture:
    Caller -> SearchService -> SearchOrchestrator -> Serializer / PromptBuilder
           -> LLMClient (provider) -> ResponseParser -> ResultBuilder -> SearchCache
"""

__version__ = "0.1.0"

from flowsearch.core.cache import SearchCache
from flowsearch.core.client import FlowSearchClient
from flowsearch.core.config import FlowSearchConfig, SearchOptions, SearchThresholds
from flowsearch.core.exceptions import (
    FlowSearchError,
    ModelError,
    ParseFailure,
    ResultBuildError,
    SearchError,
    SerializationError,
    ValidationError,
)
from flowsearch.domain import Contact, Deal, Event, Tag
from flowsearch.llm import GeminiProvider, LLMClient, OllamaProvider, OpenAIProvider
from flowsearch.search import SearchOrchestrator, SearchResult, SearchService
from flowsearch.stores import InMemoryEntityStore

__all__ = [
    "Contact",
    "Deal",
    "Event",
    "FlowSearchClient",
    "FlowSearchConfig",
    "FlowSearchError",
    "GeminiProvider",
    "InMemoryEntityStore",
    "LLMClient",
    "ModelError",
    "OllamaProvider",
    "OpenAIProvider",
    "ParseFailure",
    "ResultBuildError",
    "SearchCache",
    "SearchError",
    "SearchOptions",
    "SearchOrchestrator",
    "SearchResult",
    "SearchService",
    "SearchThresholds",
    "SerializationError",
    "Tag",
    "ValidationError",
    "__version__",
]
