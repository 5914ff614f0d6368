"""Pydantic models passed between the search pipeline stages."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# A compact, prompt-ready projection of one record: field name -> value.
SerializedEntity = dict[str, Any]


class EntityKind(str, Enum):
    """Searchable record kinds. Anything else in a model reply is ignored."""

    DEAL = "deal"
    CONTACT = "contact"
    EVENT = "event"

    @property
    def section(self) -> str:
        """Tag name of this kind's section in the model reply."""
        return f"{self.value}s"

    @classmethod
    def from_section(cls, tag_name: str) -> EntityKind | None:
        """Map a section tag name (``deals``) to its kind, None when unknown."""
        for kind in cls:
            if kind.section == tag_name:
                return kind
        return None


class ParsedMatch(BaseModel):
    """One relevance claim made by the model."""

    model_config = ConfigDict(frozen=True)

    entity_id: str = Field(..., description="Identifier as written by the model")
    score: int = Field(..., ge=0, le=100, description="Relevance score")
    reason: str = Field(..., description="Model's justification")


class ParsedResultSet(BaseModel):
    """Structured content of a model reply."""

    deals: list[ParsedMatch] = Field(default_factory=list)
    contacts: list[ParsedMatch] = Field(default_factory=list)
    events: list[ParsedMatch] = Field(default_factory=list)
    interpretation: str = ""

    def for_kind(self, kind: EntityKind) -> list[ParsedMatch]:
        return getattr(self, kind.section)

    @property
    def total(self) -> int:
        return len(self.deals) + len(self.contacts) + len(self.events)


class EntityCounts(BaseModel):
    """Per-kind record counts."""

    deals: int = 0
    contacts: int = 0
    events: int = 0

    @property
    def total(self) -> int:
        return self.deals + self.contacts + self.events


class SerializedEntities(BaseModel):
    """Everything the prompt shows the model about a user's records."""

    deals: list[SerializedEntity] = Field(default_factory=list)
    contacts: list[SerializedEntity] = Field(default_factory=list)
    events: list[SerializedEntity] = Field(default_factory=list)

    def for_kind(self, kind: EntityKind) -> list[SerializedEntity]:
        return getattr(self, kind.section)

    def counts(self) -> EntityCounts:
        return EntityCounts(
            deals=len(self.deals),
            contacts=len(self.contacts),
            events=len(self.events),
        )


class SearchMetadata(BaseModel):
    """Timing and volume facts about the computation behind a result."""

    query: str
    duration_ms: float = Field(default=0.0, ge=0, description="Wall-clock compute time")
    entities_searched: EntityCounts = Field(default_factory=EntityCounts)
    entities_matched: EntityCounts = Field(default_factory=EntityCounts)
    cache_hit: bool = False
    provider: str | None = None
    model: str | None = None


class SearchResult(BaseModel):
    """
    Ranked matches for one query.

    Each entry in ``deals``/``contacts``/``events`` is the full record (without
    loaded relations) plus ``search_score`` and ``search_reason``, sorted by
    score, highest first.
    """

    deals: list[dict[str, Any]] = Field(default_factory=list)
    contacts: list[dict[str, Any]] = Field(default_factory=list)
    events: list[dict[str, Any]] = Field(default_factory=list)
    query_interpretation: str = ""
    query: str
    metadata: SearchMetadata | None = None
    cached: bool = False

    def for_kind(self, kind: EntityKind) -> list[dict[str, Any]]:
        return getattr(self, kind.section)

    def matched_counts(self) -> EntityCounts:
        return EntityCounts(
            deals=len(self.deals),
            contacts=len(self.contacts),
            events=len(self.events),
        )

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe dict (UUIDs, decimals and datetimes as strings)."""
        return self.model_dump(mode="json")
