"""Domain records searched by FlowSearch."""

from flowsearch.domain.entities import Contact, Deal, Event, Tag

__all__ = ["Contact", "Deal", "Event", "Tag"]
