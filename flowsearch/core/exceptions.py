"""Custom exceptions for FlowSearch."""

from enum import Enum
from typing import Any


class FlowSearchError(Exception):
    """Base exception for all FlowSearch errors."""


class ConfigurationError(FlowSearchError):
    """Raised when configuration is invalid."""


class SearchError(FlowSearchError):
    """
    Base class for failures that abort a search invocation.

    ``user_message`` is safe to return to callers; ``str(error)`` may carry
    internal detail and is meant for logs only.
    """

    user_message = "Search failed"


class ValidationErrorKind(str, Enum):
    """Reasons a query can be rejected."""

    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"


class ValidationError(SearchError):
    """Raised when a query has the wrong shape."""

    def __init__(self, message: str, kind: ValidationErrorKind) -> None:
        super().__init__(message)
        self.kind = kind

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return str(self)


class SerializationError(SearchError):
    """Raised when domain records cannot be loaded for the prompt."""

    user_message = "Failed to prepare search data"


class ModelErrorKind(str, Enum):
    """Failure classes reported by a model client."""

    CONFIG_ERROR = "config_error"
    CONNECTION_ERROR = "connection_error"
    API_ERROR = "api_error"
    PARSE_ERROR = "parse_error"


class ModelError(SearchError):
    """Raised when the model client fails. Provider detail stays in ``details``."""

    user_message = "Search service temporarily unavailable"

    def __init__(
        self,
        message: str,
        kind: ModelErrorKind,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.details = details or {}


class ParseFailure(SearchError):
    """Raised when the model reply cannot be scanned at all."""

    user_message = "Failed to parse search results"


class ResultBuildError(SearchError):
    """Raised when resolving matched ids against the stores fails."""

    user_message = "Failed to build search results"
