"""
Pagination helpers shared by list and spatial queries.
"""

import math
from dataclasses import dataclass
from typing import Optional, Union

from .errors import ValidationError


@dataclass(frozen=True)
class Pagination:
    """Resolved page/limit pair."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _parse_int(name: str, value: Union[int, str]) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {name} parameter: must be an integer")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid {name} parameter: must be an integer")


def resolve_pagination(
    page: Optional[Union[int, str]],
    limit: Optional[Union[int, str]],
    default_limit: int,
    max_limit: int
) -> Pagination:
    """
    Validate page/limit request parameters.

    Missing values fall back to page 1 and `default_limit`. A page below 1
    or a limit below 1 is rejected; a limit above `max_limit` is clamped.

    Raises:
        ValidationError: On non-integer or non-positive values
    """
    page_num = 1 if page is None or page == "" else _parse_int("page", page)
    limit_num = default_limit if limit is None or limit == "" else _parse_int("limit", limit)

    if page_num < 1:
        raise ValidationError("Invalid page: must be 1 or greater")
    if limit_num < 1:
        raise ValidationError("Invalid limit: must be 1 or greater")

    return Pagination(page=page_num, limit=min(limit_num, max_limit))


def total_pages(total_count: int, limit: int) -> int:
    """ceil(total_count / limit); 0 when nothing matched."""
    if total_count <= 0:
        return 0
    return math.ceil(total_count / limit)
