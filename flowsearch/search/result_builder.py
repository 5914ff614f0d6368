"""Resolve parsed matches back to live records and rank them."""

import asyncio
import logging
import re
from typing import Any
from uuid import UUID

from flowsearch.core.exceptions import ResultBuildError
from flowsearch.domain.entities import Contact, Deal, Event
from flowsearch.search.models import EntityKind, ParsedMatch, ParsedResultSet, SearchResult
from flowsearch.search.protocols import EntityStore
from flowsearch.toolkit.float_controller import float_event

logger = logging.getLogger(__name__)

_CANONICAL_UUID = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)


def is_valid_uuid(value: str) -> bool:
    """Whether ``value`` is a UUID in hyphenated 8-4-4-4-12 text form."""
    if not isinstance(value, str):
        return False
    return _CANONICAL_UUID.fullmatch(value) is not None


def _record_fields(record: Any) -> dict[str, Any]:
    if hasattr(record, "to_record"):
        return record.to_record()
    return dict(record)


class ResultBuilder:
    """
    Build a ``SearchResult`` from parsed matches.

    Ids that are not UUIDs, repeat an earlier match, or do not resolve to a
    record of the user are dropped; the model may invent ids.
    """

    def __init__(
        self,
        deal_store: EntityStore[Deal],
        contact_store: EntityStore[Contact],
        event_store: EntityStore[Event],
    ):
        self._stores: dict[EntityKind, EntityStore[Any]] = {
            EntityKind.DEAL: deal_store,
            EntityKind.CONTACT: contact_store,
            EntityKind.EVENT: event_store,
        }

    async def build(self, user_id: str, parsed: ParsedResultSet, query: str) -> SearchResult:
        """
        Raises:
            ResultBuildError: If a store lookup raises
        """
        kinds = list(EntityKind)
        resolved = await asyncio.gather(
            *(self._build_kind(user_id, kind, parsed.for_kind(kind)) for kind in kinds)
        )
        by_kind = dict(zip(kinds, resolved, strict=True))

        return SearchResult(
            deals=by_kind[EntityKind.DEAL],
            contacts=by_kind[EntityKind.CONTACT],
            events=by_kind[EntityKind.EVENT],
            query_interpretation=parsed.interpretation,
            query=query,
        )

    async def _build_kind(
        self,
        user_id: str,
        kind: EntityKind,
        matches: list[ParsedMatch],
    ) -> list[dict[str, Any]]:
        candidates: list[ParsedMatch] = []
        seen: set[str] = set()

        for match in matches:
            if not is_valid_uuid(match.entity_id):
                self._dropped(kind, match, "invalid_id")
                continue
            key = str(UUID(match.entity_id))
            if key in seen:
                self._dropped(kind, match, "duplicate")
                continue
            seen.add(key)
            candidates.append(match)

        store = self._stores[kind]
        try:
            records = await asyncio.gather(
                *(store.get_by_id(user_id, match.entity_id) for match in candidates)
            )
        except Exception as e:
            logger.error("Failed to resolve %s matches for user %s: %s", kind.value, user_id, e)
            raise ResultBuildError(f"Failed to resolve {kind.value} matches: {e}") from e

        results = []
        for match, record in zip(candidates, records, strict=True):
            if record is None:
                self._dropped(kind, match, "not_found")
                continue
            results.append(
                {
                    **_record_fields(record),
                    "search_score": match.score,
                    "search_reason": match.reason,
                }
            )

        # sorted() is stable: equal scores keep the model's order.
        return sorted(results, key=lambda r: r["search_score"], reverse=True)

    @staticmethod
    def _dropped(kind: EntityKind, match: ParsedMatch, reason: str) -> None:
        logger.debug("Dropped %s match %r: %s", kind.value, match.entity_id, reason)
        float_event(
            "search.build.dropped", kind=kind.value, entity_id=match.entity_id, reason=reason
        )
