"""
Tests for pagination helpers.
"""

import pytest

from routebase.shared.errors import ValidationError
from routebase.shared.pagination import Pagination, resolve_pagination, total_pages


class TestResolvePagination:
    """Tests for resolve_pagination."""

    def test_defaults(self):
        """Missing values fall back to page 1 and the default limit."""
        assert resolve_pagination(None, None, 50, 200) == Pagination(page=1, limit=50)

    def test_empty_strings_are_missing(self):
        """Blank query params behave like missing ones."""
        assert resolve_pagination("", "", 20, 100) == Pagination(page=1, limit=20)

    def test_string_values(self):
        """Query strings are parsed."""
        assert resolve_pagination("3", " 25 ", 50, 200) == Pagination(page=3, limit=25)

    def test_limit_clamped(self):
        """limit=500 is clamped to the maximum."""
        assert resolve_pagination(1, 500, 50, 200).limit == 200

    def test_page_zero_rejected(self):
        """Page below 1 is a validation error."""
        with pytest.raises(ValidationError, match="page"):
            resolve_pagination(0, None, 50, 200)

    def test_limit_zero_rejected(self):
        """Limit below 1 is a validation error."""
        with pytest.raises(ValidationError, match="limit"):
            resolve_pagination(1, 0, 50, 200)

    def test_non_integer_rejected(self):
        """Non-numeric values are rejected with the parameter name."""
        with pytest.raises(ValidationError, match="page"):
            resolve_pagination("two", None, 50, 200)

    def test_offset(self):
        """Offset skips the previous pages."""
        assert Pagination(page=3, limit=20).offset == 40


class TestTotalPages:
    """Tests for total_pages."""

    @pytest.mark.parametrize("count,limit,expected", [
        (0, 50, 0),
        (1, 50, 1),
        (50, 50, 1),
        (51, 50, 2),
        (401, 200, 3),
    ])
    def test_ceiling(self, count, limit, expected):
        """ceil(count / limit), 0 when nothing matched."""
        assert total_pages(count, limit) == expected
