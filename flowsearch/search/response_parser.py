"""
Turn a model reply into ``ParsedResultSet``.

Expected reply shape::

    <results>
    <query_interpretation>...</query_interpretation>
    <deals><item><id>..</id><score>N</score><reason>..</reason></item></deals>
    <contacts>...</contacts>
    <events>...</events>
    </results>

The ``results`` wrapper is optional. Items missing ``id``, ``score`` or
``reason`` are dropped; a score that does not start with an integer becomes 50;
every score is clamped to 0..100.
"""

import logging
import re

from flowsearch.core.exceptions import ParseFailure
from flowsearch.llm.parser import extract_all, extract_tag
from flowsearch.search.models import EntityKind, ParsedMatch, ParsedResultSet
from flowsearch.toolkit.float_controller import float_event

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100
DEFAULT_MAX_RESPONSE_CHARS = 200_000

_LEADING_INT = re.compile(r"[+-]?\d+")


def parse_score(raw: str) -> int:
    """
    Leading integer of ``raw``, clamped to 0..100; 50 when there is none.

    Example:
        >>> parse_score("85abc"), parse_score("150"), parse_score("high")
        (85, 100, 50)
    """
    match = _LEADING_INT.match(raw)
    if match is None:
        return DEFAULT_SCORE
    return max(MIN_SCORE, min(MAX_SCORE, int(match.group())))


class ResponseParser:
    """Lenient parser for the search reply grammar."""

    def __init__(self, max_chars: int = DEFAULT_MAX_RESPONSE_CHARS):
        self.max_chars = max_chars

    def parse(self, text: str) -> ParsedResultSet:
        """
        Parse a model reply.

        Empty or missing sections give empty lists.

        Raises:
            ParseFailure: If the reply is not text, exceeds ``max_chars`` or
                scanning fails outright
        """
        if not isinstance(text, str):
            raise ParseFailure(f"Model reply is {type(text).__name__}, expected str")
        if len(text) > self.max_chars:
            raise ParseFailure(
                f"Model reply too large ({len(text)} chars, limit {self.max_chars})"
            )

        try:
            body = extract_tag(text, "results")
            if body is None:
                logger.debug("No <results> wrapper in model reply; scanning raw text")
                body = text

            sections = {kind: self._parse_section(body, kind) for kind in EntityKind}
            interpretation = extract_tag(body, "query_interpretation") or ""
        except Exception as e:
            logger.error("Failed to parse model reply: %s", e)
            raise ParseFailure(f"Failed to parse model reply: {e}") from e

        parsed = ParsedResultSet(
            deals=sections[EntityKind.DEAL],
            contacts=sections[EntityKind.CONTACT],
            events=sections[EntityKind.EVENT],
            interpretation=interpretation,
        )
        float_event(
            "search.parse.done",
            deals=len(parsed.deals),
            contacts=len(parsed.contacts),
            events=len(parsed.events),
        )
        return parsed

    def _parse_section(self, body: str, kind: EntityKind) -> list[ParsedMatch]:
        section = extract_tag(body, kind.section)
        if section is None:
            return []

        matches = []
        for item in extract_all(section, "item"):
            match = self._parse_item(item)
            if match is None:
                logger.debug("Dropped malformed %s item: %r", kind.value, item[:200])
                float_event("search.parse.item_dropped", kind=kind.value)
                continue
            matches.append(match)
        return matches

    @staticmethod
    def _parse_item(item: str) -> ParsedMatch | None:
        entity_id = extract_tag(item, "id")
        score = extract_tag(item, "score")
        reason = extract_tag(item, "reason")

        if entity_id is None or score is None or reason is None:
            return None
        return ParsedMatch(entity_id=entity_id, score=parse_score(score), reason=reason)
