"""Query shape checks run before any expensive work."""

from flowsearch.core.exceptions import ValidationError, ValidationErrorKind

MIN_QUERY_BYTES = 3
MAX_QUERY_BYTES = 500


class QueryValidator:
    """
    Reject queries whose UTF-8 length is outside ``[min_bytes, max_bytes]``.

    The query is not normalized here; the cache does its own normalization.
    """

    def __init__(self, min_bytes: int = MIN_QUERY_BYTES, max_bytes: int = MAX_QUERY_BYTES):
        if min_bytes > max_bytes:
            raise ValueError(f"min_bytes ({min_bytes}) must not exceed max_bytes ({max_bytes})")
        self.min_bytes = min_bytes
        self.max_bytes = max_bytes

    def validate(self, query: str) -> None:
        """
        Raises:
            ValidationError: too_short or too_long
        """
        size = len(query.encode("utf-8"))

        if size < self.min_bytes:
            raise ValidationError(
                f"Query too short (minimum {self.min_bytes} characters)",
                ValidationErrorKind.TOO_SHORT,
            )
        if size > self.max_bytes:
            raise ValidationError(
                f"Query too long (maximum {self.max_bytes} characters)",
                ValidationErrorKind.TOO_LONG,
            )
