"""Reference record stores."""

from flowsearch.stores.memory import InMemoryEntityStore

__all__ = ["InMemoryEntityStore"]
