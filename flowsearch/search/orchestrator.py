"""
Search orchestration.

One ``search`` call runs:

    validate -> cache lookup -> [hit: cached copy]
                             -> [miss: serialize -> prompt -> model -> parse -> build -> cache]

and stops at the first hard failure. The model call blocks, so it runs in a
worker thread and concurrent searches do not wait on each other.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, date, datetime
import logging
import time

from flowsearch.core.cache import SearchCache
from flowsearch.core.config import SearchOptions, SerializationLimits
from flowsearch.core.exceptions import ModelError, ModelErrorKind, SearchError
from flowsearch.llm.factory import ModelClient
from flowsearch.llm.models import ModelRequest, ModelResponse
from flowsearch.search.models import SearchMetadata, SearchResult, SerializedEntities
from flowsearch.search.prompts import PromptBuilder
from flowsearch.search.response_parser import ResponseParser
from flowsearch.search.result_builder import ResultBuilder
from flowsearch.search.serializer import EntitySerializer
from flowsearch.search.validator import QueryValidator
from flowsearch.toolkit.float_controller import FloatController, float_event

logger = logging.getLogger(__name__)


def _utc_today() -> date:
    return datetime.now(UTC).date()


class SearchOrchestrator:
    """
    Run natural-language searches with a per-user result cache.

    The cache stores results as computed (``cached=False``); a hit returns a
    copy marked ``cached=True`` with ``metadata.cache_hit`` set and the
    original timing and counts.

    Usage:
        >>> result = await orchestrator.search("user-1", "high value deals")
        >>> [d["title"] for d in result.deals]
    """

    def __init__(
        self,
        validator: QueryValidator,
        serializer: EntitySerializer,
        prompt_builder: PromptBuilder,
        model_client: ModelClient,
        parser: ResponseParser,
        result_builder: ResultBuilder,
        cache: SearchCache[SearchResult],
        limits: SerializationLimits | None = None,
        default_options: SearchOptions | None = None,
        today: Callable[[], date] = _utc_today,
    ):
        self.validator = validator
        self.serializer = serializer
        self.prompt_builder = prompt_builder
        self.model_client = model_client
        self.parser = parser
        self.result_builder = result_builder
        self.cache = cache
        self.limits = limits or SerializationLimits()
        self.default_options = default_options or SearchOptions()
        self._today = today

    async def search(
        self,
        user_id: str,
        query: str,
        options: SearchOptions | None = None,
    ) -> SearchResult:
        """
        Search a user's deals, contacts and events.

        Args:
            user_id: Owner of the records searched
            query: Free-text query
            options: Per-request options; unset fields fall back to the defaults

        Raises:
            ValidationError: Query shape is wrong
            SerializationError: Records could not be loaded
            ModelError: Model call failed
            ParseFailure: Reply could not be scanned
            ResultBuildError: Matches could not be resolved
        """
        options = self._merge_options(options)
        FloatController.new_trace()

        logger.info("Natural language search: user=%s, query=%r", user_id, query)
        float_event("search.start", user_id=user_id, query=query)

        try:
            self.validator.validate(query)

            if options.use_cache:
                cached = self.cache.get(user_id, query)
                if cached is not None:
                    logger.info("Cache hit for query %r (user=%s)", query, user_id)
                    float_event("search.cache.hit", user_id=user_id, query=query)
                    return self._mark_cached(cached)
                float_event("search.cache.miss", user_id=user_id, query=query)

            result = await self._compute(user_id, query, options)
        except SearchError as e:
            logger.error("Search failed (%s): %s", type(e).__name__, e)
            float_event("search.error", error=type(e).__name__, user_id=user_id)
            raise
        except Exception as e:
            logger.exception("Unexpected search failure for user %s", user_id)
            float_event("search.error", error=type(e).__name__, user_id=user_id)
            raise

        if options.use_cache:
            self.cache.put(user_id, query, result.model_copy(deep=True))

        float_event(
            "search.complete",
            user_id=user_id,
            duration_ms=result.metadata.duration_ms,
            matched=result.metadata.entities_matched.total,
        )
        return result

    async def _compute(self, user_id: str, query: str, options: SearchOptions) -> SearchResult:
        started = time.perf_counter()

        serialized = await self.serializer.serialize_all(user_id, self.limits)
        request = self.prompt_builder.build(query, serialized, self._today(), options)
        response = await self._call_model(request)
        parsed = self.parser.parse(response.content)
        result = await self.result_builder.build(user_id, parsed, query)

        duration_ms = (time.perf_counter() - started) * 1000
        logger.info("Search completed in %.1fms", duration_ms)

        return result.model_copy(
            update={
                "metadata": self._metadata(query, duration_ms, serialized, result, response),
                "cached": False,
            }
        )

    async def _call_model(self, request: ModelRequest) -> ModelResponse:
        float_event(
            "search.llm.call",
            provider=request.options.provider,
            model=request.options.model,
        )
        logger.debug(
            "Querying model: provider=%s, model=%s",
            request.options.provider,
            request.options.model,
        )

        try:
            return await asyncio.to_thread(self.model_client.complete, request)
        except ModelError as e:
            logger.error("Model query failed (%s): %s", e.kind.value, e)
            float_event("search.llm.error", kind=e.kind.value)
            raise
        except Exception as e:
            logger.error("Model client raised %s: %s", type(e).__name__, e)
            float_event("search.llm.error", kind=ModelErrorKind.API_ERROR.value)
            raise ModelError(
                f"Model client failed: {type(e).__name__}",
                ModelErrorKind.API_ERROR,
            ) from e

    @staticmethod
    def _metadata(
        query: str,
        duration_ms: float,
        serialized: SerializedEntities,
        result: SearchResult,
        response: ModelResponse,
    ) -> SearchMetadata:
        return SearchMetadata(
            query=query,
            duration_ms=round(duration_ms, 3),
            entities_searched=serialized.counts(),
            entities_matched=result.matched_counts(),
            cache_hit=False,
            provider=response.provider,
            model=response.model,
        )

    @staticmethod
    def _mark_cached(stored: SearchResult) -> SearchResult:
        # model_copy(update=...) does not copy the update values; copy first.
        copied = stored.model_copy(deep=True)
        update: dict = {"cached": True}
        if copied.metadata is not None:
            update["metadata"] = copied.metadata.model_copy(update={"cache_hit": True})
        return copied.model_copy(update=update)

    def _merge_options(self, options: SearchOptions | None) -> SearchOptions:
        if options is None:
            return self.default_options

        update = options.model_dump(exclude_unset=True)
        # The default model belongs to the default provider.
        if update.get("provider") not in (None, self.default_options.provider):
            update.setdefault("model", None)
        return self.default_options.model_copy(update=update)
