"""
Transport-neutral search surface.

``SearchService.handle`` takes a plain payload and always returns a JSON-safe
dict, either ``{"data": {...}}`` or ``{"error": {"code": ..., "message": ...}}``.
Only caller-safe messages leave this module; detail goes to the log.
"""

from collections.abc import Mapping
import logging
from typing import Any

import pydantic

from flowsearch.core.config import SearchOptions
from flowsearch.core.exceptions import SearchError
from flowsearch.search.orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)

MISSING_QUERY = "MISSING_QUERY"
MISSING_USER = "MISSING_USER"
SEARCH_ERROR = "SEARCH_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


def error_payload(code: str, message: str) -> dict[str, Any]:
    return {"error": {"code": code, "message": message}}


class SearchService:
    """
    Payload in, payload out.

    Payload keys: ``user_id`` (required), ``query`` (required string) and
    ``options`` (optional mapping of ``SearchOptions`` fields).
    """

    def __init__(self, orchestrator: SearchOrchestrator):
        self.orchestrator = orchestrator

    async def handle(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        query = payload.get("query")
        if not isinstance(query, str):
            return error_payload(MISSING_QUERY, "Query parameter is required")

        user_id = payload.get("user_id")
        if user_id is None or str(user_id) == "":
            return error_payload(MISSING_USER, "User is required")

        try:
            options = SearchOptions.model_validate(payload.get("options") or {})
        except pydantic.ValidationError as e:
            logger.warning("Rejected search options: %s", e)
            return error_payload(SEARCH_ERROR, "Invalid search options")

        try:
            result = await self.orchestrator.search(str(user_id), query, options)
        except SearchError as e:
            return error_payload(SEARCH_ERROR, e.user_message)
        except Exception:
            logger.exception("Unhandled error while searching for user %s", user_id)
            return error_payload(INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)

        return {"data": result.to_payload()}
