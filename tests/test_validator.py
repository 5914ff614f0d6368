"""QueryValidator: byte-length bounds."""

import pytest

from flowsearch.core.exceptions import ValidationError, ValidationErrorKind
from flowsearch.search.validator import QueryValidator


@pytest.fixture
def validator():
    return QueryValidator()


@pytest.mark.parametrize("query", ["abc", "high value deals", "a" * 500, "éa", "é" * 250])
def test_accepts_queries_within_bounds(validator, query):
    validator.validate(query)


@pytest.mark.parametrize("query", ["", "ab", "é"])
def test_rejects_short_queries(validator, query):
    with pytest.raises(ValidationError) as exc_info:
        validator.validate(query)

    assert exc_info.value.kind is ValidationErrorKind.TOO_SHORT
    assert exc_info.value.user_message == "Query too short (minimum 3 characters)"


@pytest.mark.parametrize("query", ["a" * 501, "é" * 251])
def test_rejects_long_queries(validator, query):
    with pytest.raises(ValidationError) as exc_info:
        validator.validate(query)

    assert exc_info.value.kind is ValidationErrorKind.TOO_LONG
    assert str(exc_info.value) == "Query too long (maximum 500 characters)"


def test_does_not_normalize(validator):
    # Three spaces are three bytes.
    validator.validate("   ")


def test_custom_bounds():
    validator = QueryValidator(min_bytes=5, max_bytes=10)

    validator.validate("hello")
    with pytest.raises(ValidationError):
        validator.validate("hey")
    with pytest.raises(ValidationError):
        validator.validate("hello world")


def test_inverted_bounds_rejected():
    with pytest.raises(ValueError):
        QueryValidator(min_bytes=10, max_bytes=5)
