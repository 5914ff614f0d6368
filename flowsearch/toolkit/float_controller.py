"""
Float Controller - execution markers for the search pipeline.

Floats are named events emitted at each pipeline stage. They let tests and
debugging sessions see which stages ran (and which did not, e.g. no model call
on a cache hit) without parsing logs.

- Disabled by default: ``float_event`` is a no-op in production
- Thread-safe: searches run concurrently
- Trace ids are context-local, so concurrent searches do not mix them

Usage:
    >>> from flowsearch.toolkit import FloatContext, float_event
    >>>
    >>> with FloatContext() as fc:
    ...     float_event("search.start", user_id="u1")
    ...     assert fc.has_float("search.start")
"""

from __future__ import annotations

from collections import defaultdict
from contextvars import ContextVar
from datetime import UTC, datetime
from fnmatch import fnmatchcase
import logging
from threading import Lock
from typing import Any
from uuid import uuid4

logger = logging.getLogger(__name__)

_current_trace_id: ContextVar[str | None] = ContextVar("flowsearch_trace_id", default=None)


class FloatEvent:
    """
    Single float event.

    Attributes:
        float_id: Unique float identifier
        name: Float name (e.g., "search.cache.hit")
        timestamp: When the float occurred (UTC)
        data: Additional data attached to the float
        trace_id: Trace id active when the float was emitted
    """

    __slots__ = ("data", "float_id", "name", "timestamp", "trace_id")

    def __init__(self, name: str, data: dict[str, Any] | None = None, trace_id: str | None = None):
        self.float_id = str(uuid4())
        self.name = name
        self.timestamp = datetime.now(UTC)
        self.data = data or {}
        self.trace_id = trace_id

    def __repr__(self) -> str:
        return f"FloatEvent(name={self.name!r}, trace_id={self.trace_id!r}, data={self.data})"


class FloatController:
    """
    Collects float events when enabled.

    One controller per process (``get_instance``); ``FloatContext`` flips it on
    for the duration of a test.
    """

    _instance: FloatController | None = None
    _instance_lock = Lock()

    def __init__(self, enabled: bool = False, max_events: int = 10_000):
        """
        Initialize float controller.

        Args:
            enabled: Whether to collect floats
            max_events: Oldest floats are dropped beyond this count (0 = unlimited)
        """
        self.enabled = enabled
        self.max_events = max_events
        self._floats: list[FloatEvent] = []
        self._floats_by_name: dict[str, list[FloatEvent]] = defaultdict(list)
        self._lock = Lock()

    @classmethod
    def get_instance(cls, enabled: bool | None = None) -> FloatController:
        """Get the process-wide controller, creating it on first use."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(enabled=bool(enabled))
            elif enabled is not None:
                cls._instance.enabled = enabled
            return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the process-wide controller (tests)."""
        with cls._instance_lock:
            cls._instance = None

    @staticmethod
    def new_trace() -> str:
        """Start a new trace in the current context and return its id."""
        trace_id = uuid4().hex[:12]
        _current_trace_id.set(trace_id)
        return trace_id

    @staticmethod
    def current_trace() -> str | None:
        return _current_trace_id.get()

    def float(self, event_name: str, **data: Any) -> FloatEvent | None:
        """
        Emit a float event.

        Returns:
            FloatEvent if enabled, None otherwise
        """
        if not self.enabled:
            return None

        event = FloatEvent(name=event_name, data=data, trace_id=_current_trace_id.get())

        with self._lock:
            self._floats.append(event)
            self._floats_by_name[event_name].append(event)
            if self.max_events and len(self._floats) > self.max_events:
                dropped = self._floats.pop(0)
                self._floats_by_name[dropped.name].remove(dropped)

        logger.debug("FLOAT[%s] %s (trace=%s)", event_name, data, event.trace_id)
        return event

    def has_float(self, name: str) -> bool:
        with self._lock:
            return bool(self._floats_by_name.get(name))

    def get_floats(self, pattern: str | None = None) -> list[FloatEvent]:
        """
        Get floats, optionally filtered by a glob pattern.

        Example:
            >>> fc.get_floats("search.cache.*")
        """
        with self._lock:
            if pattern is None:
                return list(self._floats)
            return [event for event in self._floats if fnmatchcase(event.name, pattern)]

    def get_float(self, name: str, index: int = 0) -> FloatEvent | None:
        with self._lock:
            events = self._floats_by_name.get(name, [])
            return events[index] if index < len(events) else None

    def count_floats(self, pattern: str | None = None) -> int:
        return len(self.get_floats(pattern))

    def clear(self) -> None:
        with self._lock:
            self._floats.clear()
            self._floats_by_name.clear()

    def get_report(self) -> dict[str, Any]:
        """Summary of collected floats."""
        with self._lock:
            return {
                "enabled": self.enabled,
                "total_floats": len(self._floats),
                "float_counts": {
                    name: len(events) for name, events in self._floats_by_name.items() if events
                },
            }

    def __repr__(self) -> str:
        return f"FloatController(enabled={self.enabled}, floats={len(self._floats)})"


def get_float_controller(enabled: bool | None = None) -> FloatController:
    """Get the process-wide float controller."""
    return FloatController.get_instance(enabled=enabled)


def float_event(event_name: str, **data: Any) -> FloatEvent | None:
    """Emit a float on the process-wide controller."""
    return FloatController.get_instance().float(event_name, **data)


class FloatContext:
    """
    Context manager enabling float collection, e.g. inside a test.

    Usage:
        >>> with FloatContext() as fc:
        ...     await orchestrator.search("u1", "hot deals")
        ...     assert not fc.has_float("search.llm.call")
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.fc = FloatController.get_instance()
        self._old_enabled = self.fc.enabled

    def __enter__(self) -> FloatController:
        self.fc.enabled = self.enabled
        self.fc.clear()
        return self.fc

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.fc.enabled = self._old_enabled
        return False
