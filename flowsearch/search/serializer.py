"""
Compact, prompt-ready projections of deals, contacts and events.

Every serialized record has the same keys whether or not the source value is
set, so the prompt schema never changes shape:

- money: ``"$0"`` when absent, else ``"$"`` + plain decimal text
- dates: ISO date, ``"N/A"`` when absent
- timestamps: ``YYYY-MM-DD HH:MM:SSZ`` in UTC, ``"N/A"`` when absent
- description/notes: ``""`` when absent, cut to a byte budget plus ``"..."``
- tags: names only
- linked records: display name, ``"N/A"`` when not loaded
"""

import asyncio
from collections.abc import Callable, Iterable
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
import logging
from typing import Any, TypeVar

from flowsearch.core.config import SearchThresholds, SerializationLimits
from flowsearch.core.exceptions import SerializationError
from flowsearch.domain.entities import Contact, Deal, Event, Tag
from flowsearch.search.models import SerializedEntities, SerializedEntity
from flowsearch.search.protocols import EntityStore
from flowsearch.toolkit.float_controller import float_event

logger = logging.getLogger(__name__)

T = TypeVar("T")

NOT_AVAILABLE = "N/A"
TRUNCATION_MARKER = "..."
DEFAULT_TEXT_MAX_BYTES = 200


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_money(amount: Decimal | int | float | None) -> str:
    """``$`` plus the stored decimal, no separators or rounding."""
    if amount is None:
        return "$0"
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return f"${amount:f}"


def format_date(value: date | None) -> str:
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, datetime):
        value = _as_utc(value).date()
    return value.isoformat()


def format_datetime(value: datetime | None) -> str:
    if value is None:
        return NOT_AVAILABLE
    return _as_utc(value).strftime("%Y-%m-%d %H:%M:%SZ")


def truncate(text: str | None, max_bytes: int = DEFAULT_TEXT_MAX_BYTES) -> str:
    """
    Cut ``text`` to ``max_bytes`` of UTF-8 and append ``"..."``.

    A multi-byte character split by the cut is dropped.

    Example:
        >>> len(truncate("x" * 250))
        203
    """
    if text is None:
        return ""

    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore") + TRUNCATION_MARKER


def tag_names(tags: Iterable[Tag | str | dict[str, Any]] | None) -> list[str]:
    """Names of ``tags`` in order; unrecognized entries become ``""``."""
    if tags is None:
        return []

    names = []
    for tag in tags:
        if isinstance(tag, Tag):
            names.append(tag.name)
        elif isinstance(tag, str):
            names.append(tag)
        elif isinstance(tag, dict):
            names.append(str(tag.get("name") or ""))
        else:
            names.append("")
    return names


def days_between(later: datetime | None, earlier: datetime | None) -> int | str:
    """Whole days from ``earlier`` to ``later``, truncated toward zero."""
    if later is None or earlier is None:
        return NOT_AVAILABLE
    return int((_as_utc(later) - _as_utc(earlier)) / timedelta(days=1))


class EntitySerializer:
    """
    Load a user's records from the stores and project them for the prompt.

    The derived ``value_band`` (deals) and ``risk_band`` (contacts) use the
    same ``SearchThresholds`` the system prompt describes.
    """

    def __init__(
        self,
        deal_store: EntityStore[Deal],
        contact_store: EntityStore[Contact],
        event_store: EntityStore[Event],
        thresholds: SearchThresholds | None = None,
        text_max_bytes: int = DEFAULT_TEXT_MAX_BYTES,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.deal_store = deal_store
        self.contact_store = contact_store
        self.event_store = event_store
        self.thresholds = thresholds or SearchThresholds()
        self.text_max_bytes = text_max_bytes
        self._clock = clock

    async def serialize_all(
        self,
        user_id: str,
        limits: SerializationLimits | None = None,
    ) -> SerializedEntities:
        """
        Serialize every kind of record for ``user_id``, capped per kind.

        Records past a cap are left out in store order.

        Raises:
            SerializationError: If any store read or record projection fails
        """
        limits = limits or SerializationLimits()

        try:
            deals, contacts, events = await asyncio.gather(
                self.deal_store.list_for_user(user_id),
                self.contact_store.list_for_user(user_id),
                self.event_store.list_for_user(user_id),
            )

            now = self._clock()
            serialized = SerializedEntities(
                deals=[
                    self.serialize_deal(d, now) for d in self._cap(deals, limits.deals, "deals")
                ],
                contacts=[
                    self.serialize_contact(c, now)
                    for c in self._cap(contacts, limits.contacts, "contacts")
                ],
                events=[
                    self.serialize_event(e, now)
                    for e in self._cap(events, limits.events, "events")
                ],
            )
        except Exception as e:
            logger.error("Entity serialization failed for user %s: %s", user_id, e)
            raise SerializationError(f"Entity serialization failed: {e}") from e

        counts = serialized.counts()
        logger.debug(
            "Serialized %d deals, %d contacts, %d events for user %s",
            counts.deals,
            counts.contacts,
            counts.events,
            user_id,
        )
        float_event(
            "search.serialize.done",
            user_id=user_id,
            deals=counts.deals,
            contacts=counts.contacts,
            events=counts.events,
        )
        return serialized

    @staticmethod
    def _cap(records: list[T], limit: int, label: str) -> list[T]:
        if len(records) > limit:
            logger.debug("Capping %s at %d of %d", label, limit, len(records))
        return list(records[:limit])

    def serialize_deal(self, deal: Deal, now: datetime | None = None) -> SerializedEntity:
        now = now or self._clock()
        return {
            "id": str(deal.id),
            "title": deal.title or "",
            "company": deal.company or "",
            "value": format_money(deal.value),
            "value_band": self.value_band(deal.value),
            "stage": deal.stage,
            "probability": deal.probability,
            "confidence": deal.confidence,
            "priority": deal.priority,
            "expected_close_date": format_date(deal.expected_close_date),
            "closed_date": format_date(deal.closed_date),
            "description": truncate(deal.description, self.text_max_bytes),
            "competitor_mentioned": deal.competitor_mentioned or "none",
            "last_activity_at": format_datetime(deal.last_activity_at),
            "contact_name": deal.contact.name if deal.contact is not None else NOT_AVAILABLE,
            "tags": tag_names(deal.tags),
            "days_in_pipeline": days_between(now, deal.inserted_at),
        }

    def serialize_contact(self, contact: Contact, now: datetime | None = None) -> SerializedEntity:
        now = now or self._clock()
        return {
            "id": str(contact.id),
            "name": contact.name,
            "email": contact.email or "",
            "phone": contact.phone or "",
            "company": contact.company or "",
            "title": contact.title or "",
            "relationship_health": contact.relationship_health,
            "health_score": contact.health_score,
            "sentiment": contact.sentiment,
            "churn_risk": contact.churn_risk,
            "risk_band": self.risk_band(contact),
            "last_contact_at": format_datetime(contact.last_contact_at),
            "next_follow_up_at": format_datetime(contact.next_follow_up_at),
            "total_deals_count": contact.total_deals_count,
            "total_deals_value": format_money(contact.total_deals_value),
            "notes": truncate(contact.notes, self.text_max_bytes),
            "tags": tag_names(contact.tags),
            "days_since_contact": days_between(now, contact.last_contact_at),
        }

    def serialize_event(self, event: Event, now: datetime | None = None) -> SerializedEntity:
        now = now or self._clock()
        deal_title = event.deal.title if event.deal is not None else None
        return {
            "id": str(event.id),
            "title": event.title,
            "description": truncate(event.description, self.text_max_bytes),
            "start_time": format_datetime(event.start_time),
            "end_time": format_datetime(event.end_time),
            "type": event.type,
            "location": event.location or "",
            "meeting_link": event.meeting_link or "",
            "status": event.status,
            "priority": event.priority,
            "contact_name": event.contact.name if event.contact is not None else NOT_AVAILABLE,
            "deal_title": deal_title or NOT_AVAILABLE,
            "tags": tag_names(event.tags),
            "days_until": days_between(event.start_time, now),
        }

    def value_band(self, value: Decimal | None) -> str:
        """``large`` / ``high`` / ``standard`` / ``small`` per the thresholds."""
        amount = value if value is not None else Decimal(0)
        t = self.thresholds
        if amount > t.large_deal:
            return "large"
        if amount > t.high_value:
            return "high"
        if amount < t.small_deal:
            return "small"
        return "standard"

    def risk_band(self, contact: Contact) -> str:
        """``at_risk`` / ``hot`` / ``normal`` per the thresholds."""
        t = self.thresholds
        if contact.churn_risk > t.at_risk_churn:
            return "at_risk"
        if contact.health_score > t.hot_health_score:
            return "hot"
        return "normal"
