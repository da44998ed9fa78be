"""Normalization of raw list query parameters (page, limit, search, filters)."""

import re
from dataclasses import dataclass, field
from typing import Annotated, Callable, Mapping, Optional

from fastapi import Path, Request

from app.core.schemas import MAX_ROW_ID

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# Enrollment listings page through a whole class roster at once
ENROLLMENT_DEFAULT_LIMIT = 100
ENROLLMENT_MAX_LIMIT = 1000

# OFFSET is a 64-bit integer on both PostgreSQL and SQLite
MAX_OFFSET = 2**63 - 1

LEADING_INT = re.compile(r"\s*([+-]?\d+)")

# Integer path id; out-of-range ids fail validation instead of overflowing the store
PathId = Annotated[int, Path(ge=1, le=MAX_ROW_ID)]


def first_param(query_params: Mapping, *names: str) -> Optional[str]:
    """First value of the first name present. Repeated parameters collapse to their first element."""
    for name in names:
        if hasattr(query_params, "getlist"):
            values = query_params.getlist(name)
        else:
            value = query_params.get(name)
            values = value if isinstance(value, (list, tuple)) else ([] if value is None else [value])
        if values:
            return values[0]
    return None


def parse_int(value: Optional[str]) -> Optional[int]:
    """Leading integer of the value ("10abc" -> 10), None when there is none."""
    if value is None:
        return None
    match = LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_page(value: Optional[str], limit: int = DEFAULT_LIMIT) -> int:
    # 0 and garbage both mean "first page"; the cap keeps the offset in range
    page = max(1, parse_int(value) or 1)
    return min(page, MAX_OFFSET // limit + 1)


def parse_limit(value: Optional[str], default: int = DEFAULT_LIMIT, max_limit: int = MAX_LIMIT) -> int:
    return min(max_limit, max(1, parse_int(value) or default))


@dataclass(frozen=True)
class ListParams:
    page: int = 1
    limit: int = DEFAULT_LIMIT
    search: Optional[str] = None
    query: Mapping = field(default_factory=dict)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def first(self, *names: str) -> Optional[str]:
        """Text filter value; empty strings count as absent."""
        value = first_param(self.query, *names)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def int_param(self, *names: str) -> Optional[int]:
        """Integer id filter; values that do not parse are dropped.

        Ids outside the column range cannot match a row, so they become 0,
        which autoincrement keys never use.
        """
        value = parse_int(self.first(*names))
        if value is not None and not -MAX_ROW_ID <= value <= MAX_ROW_ID:
            return 0
        return value

    @classmethod
    def from_mapping(
        cls,
        query: Mapping,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> "ListParams":
        search = first_param(query, "search")
        search = search.strip() if search else None
        limit = parse_limit(first_param(query, "limit"), default_limit, max_limit)
        return cls(
            page=parse_page(first_param(query, "page"), limit),
            limit=limit,
            search=search or None,
            query=query,
        )


def list_params(
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> Callable[[Request], ListParams]:
    """
    Dependency factory reading raw query parameters into ListParams.

    Example:
        params: ListParams = Depends(list_params(ENROLLMENT_DEFAULT_LIMIT, ENROLLMENT_MAX_LIMIT))
    """

    def _dependency(request: Request) -> ListParams:
        return ListParams.from_mapping(request.query_params, default_limit, max_limit)

    return _dependency
