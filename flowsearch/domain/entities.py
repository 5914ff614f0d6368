"""Pydantic models for the CRM records the search core reads."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class Tag(BaseModel):
    """A user-defined label attached to deals, contacts or events."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    color: str | None = None


class _Record(BaseModel):
    """Fields shared by every searchable record."""

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., description="Owning user")
    tags: list[Tag | str | dict[str, Any]] = Field(default_factory=list)
    inserted_at: datetime | None = None
    updated_at: datetime | None = None

    # Loaded relations; never part of a search result.
    relation_fields: ClassVar[frozenset[str]] = frozenset()

    def to_record(self) -> dict[str, Any]:
        """Record fields without loaded relations."""
        return self.model_dump(exclude=set(self.relation_fields))


class Contact(_Record):
    """A person the user has a relationship with."""

    name: str
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    title: str | None = None
    avatar_url: str | None = None
    relationship_health: str = "medium"
    health_score: int = Field(default=50, ge=0, le=100)
    last_contact_at: datetime | None = None
    next_follow_up_at: datetime | None = None
    sentiment: str = "neutral"
    churn_risk: int = Field(default=0, ge=0, le=100)
    total_deals_count: int = 0
    total_deals_value: Decimal | None = Decimal("0")
    notes: str | None = None


class Deal(_Record):
    """A sales opportunity."""

    relation_fields: ClassVar[frozenset[str]] = frozenset({"contact"})

    title: str | None = None
    company: str | None = None
    value: Decimal | None = None
    stage: str = "prospect"
    probability: int = Field(default=0, ge=0, le=100)
    confidence: str = "medium"
    expected_close_date: date | None = None
    closed_date: date | None = None
    description: str | None = None
    priority: str = "medium"
    competitor_mentioned: str | None = None
    last_activity_at: datetime | None = None
    contact_id: UUID | None = None
    contact: Contact | None = None


class Event(_Record):
    """A calendar event."""

    relation_fields: ClassVar[frozenset[str]] = frozenset({"contact", "deal"})

    title: str
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    type: str = "meeting"
    location: str | None = None
    meeting_link: str | None = None
    status: str = "scheduled"
    priority: str = "medium"
    contact_id: UUID | None = None
    deal_id: UUID | None = None
    contact: Contact | None = None
    deal: Deal | None = None
