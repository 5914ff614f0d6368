"""Core module for FlowSearch - configuration, errors, cache and the client."""

from flowsearch.core.cache import SearchCache, normalize_query
from flowsearch.core.config import (
    FlowSearchConfig,
    SearchOptions,
    SearchThresholds,
    SerializationLimits,
)
from flowsearch.core.exceptions import (
    ConfigurationError,
    FlowSearchError,
    ModelError,
    ModelErrorKind,
    ParseFailure,
    ResultBuildError,
    SearchError,
    SerializationError,
    ValidationError,
    ValidationErrorKind,
)
from flowsearch.core.client import FlowSearchClient

__all__ = [
    "ConfigurationError",
    "FlowSearchClient",
    "FlowSearchConfig",
    "FlowSearchError",
    "ModelError",
    "ModelErrorKind",
    "ParseFailure",
    "ResultBuildError",
    "SearchCache",
    "SearchError",
    "SearchOptions",
    "SearchThresholds",
    "SerializationError",
    "SerializationLimits",
    "ValidationError",
    "ValidationErrorKind",
    "normalize_query",
]
