"""Page arithmetic and paginated result shapes.

These helpers are independent of QueryBuilder so they can also be applied to
hand-written SQL (``build_count_query``, ``add_pagination_to_query``).
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from poly_query.core.enums import DatabaseDialect
from poly_query.core.exceptions import QueryBuildError
from poly_query.query.dialects import DialectProfile, get_profile

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 1000

_TRAILING_ORDER_BY = re.compile(r"\s+ORDER\s+BY\s+[^)]*$", re.IGNORECASE)
_TRAILING_LIMIT = re.compile(r"\s+LIMIT\s+\d+(\s+OFFSET\s+\d+)?$", re.IGNORECASE)
_TRAILING_FETCH = re.compile(
    r"\s+OFFSET\s+\d+\s+ROWS(\s+FETCH\s+NEXT\s+\d+\s+ROWS\s+ONLY)?$", re.IGNORECASE
)
_GROUP_BY = re.compile(r"\s+GROUP\s+BY\s+", re.IGNORECASE)
_ORDER_BY = re.compile(r"\s+ORDER\s+BY\s+", re.IGNORECASE)
_FROM = re.compile(r"\bFROM\b", re.IGNORECASE)


@dataclass(frozen=True)
class PaginationOptions:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    max_page_size: int = MAX_PAGE_SIZE


@dataclass(frozen=True)
class PageInfo:
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


@dataclass(frozen=True)
class PaginationResult:
    """One page of rows plus its position in the full result."""

    data: list[dict[str, Any]]
    pagination: PageInfo


@dataclass(frozen=True)
class PaginationNav:
    """Navigation model for rendering page links."""

    current: int
    total_pages: int
    pages: tuple[int, ...] = field(default_factory=tuple)
    has_first: bool = False
    has_last: bool = False
    has_prev: bool = False
    has_next: bool = False
    prev: int | None = None
    next: int | None = None


def validate_pagination_options(
    page: int | None = None,
    page_size: int | None = None,
    max_page_size: int | None = None,
) -> PaginationOptions:
    """Normalize pagination input.

    ``page`` is raised to at least 1 and ``page_size`` clamped to
    ``[1, max_page_size]``. Missing or zero values fall back to the defaults.
    """
    max_size = max_page_size or MAX_PAGE_SIZE
    return PaginationOptions(
        page=max(1, page or 1),
        page_size=min(max_size, max(1, page_size or DEFAULT_PAGE_SIZE)),
        max_page_size=max_size,
    )


def calculate_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def calculate_total_pages(total: int, page_size: int) -> int:
    if page_size < 1:
        raise QueryBuildError(
            "page_size must be a positive integer",
            code="INVALID_PAGINATION",
            context={"page_size": page_size},
        )
    return math.ceil(total / page_size)


def build_limit_clause(
    dialect: DatabaseDialect | DialectProfile | str, page: int, page_size: int
) -> str:
    """Render the pagination clause for *page* in *dialect*'s style.

    >>> build_limit_clause("mysql", 3, 10)
    'LIMIT 10 OFFSET 20'
    >>> build_limit_clause("mssql", 1, 10)
    'OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY'
    """
    profile = get_profile(dialect)
    return profile.pagination_clause(page_size, calculate_offset(page, page_size))


def build_count_query(query: str) -> str:
    """Rewrite a SELECT into ``SELECT COUNT(*) AS total ...`` over the same rows.

    A trailing ORDER BY and pagination clause are dropped. Grouped queries
    are wrapped in a subquery so the count is of groups, not rows.

    Raises:
        QueryBuildError: If the query has no FROM clause.
    """
    cleaned = query.strip()
    cleaned = _TRAILING_LIMIT.sub("", cleaned)
    cleaned = _TRAILING_FETCH.sub("", cleaned)
    cleaned = _TRAILING_ORDER_BY.sub("", cleaned)

    if _GROUP_BY.search(cleaned):
        return f"SELECT COUNT(*) AS total FROM ({cleaned}) count_subquery"

    match = _FROM.search(cleaned)
    if match is None:
        raise QueryBuildError(
            "Invalid query: FROM clause not found",
            code="MISSING_FROM_TABLE",
            context={"query": query},
        )
    return f"SELECT COUNT(*) AS total {cleaned[match.start():]}"


def add_pagination_to_query(
    query: str,
    dialect: DatabaseDialect | DialectProfile | str,
    page: int,
    page_size: int,
) -> str:
    """Append a pagination clause, adding ``ORDER BY 1`` when the query has none."""
    if not _ORDER_BY.search(query):
        query += " ORDER BY 1"
    return f"{query} {build_limit_clause(dialect, page, page_size)}"


def create_pagination_result(
    data: Sequence[dict[str, Any]],
    total: int,
    page: int,
    page_size: int,
) -> PaginationResult:
    total_pages = calculate_total_pages(total, page_size)
    return PaginationResult(
        data=list(data),
        pagination=PageInfo(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        ),
    )


def get_pagination_summary(page: int, page_size: int, total: int) -> str:
    """Human-readable position, e.g. ``"Showing 11-20 of 45 (page 2/5)"``."""
    total_pages = calculate_total_pages(total, page_size)
    if total <= 0:
        return "No results"
    start = calculate_offset(page, page_size) + 1
    if start > total:
        return f"Showing 0 of {total} (page {page}/{total_pages})"
    end = min(start + page_size - 1, total)
    return f"Showing {start}-{end} of {total} (page {page}/{total_pages})"


def is_valid_pagination(page: int, page_size: int, total: int) -> bool:
    """True if *page* exists for *total* rows. Page 1 is valid for an empty set."""
    if page < 1 or page_size < 1:
        return False
    if total == 0:
        return page == 1
    return page <= calculate_total_pages(total, page_size)


def get_adjacent_pages(current_page: int, total_pages: int, window: int = 2) -> list[int]:
    start = max(1, current_page - window)
    end = min(total_pages, current_page + window)
    return list(range(start, end + 1))


def generate_pagination_nav(
    page: int, page_size: int, total: int, window: int = 2
) -> PaginationNav:
    total_pages = calculate_total_pages(total, page_size)
    pages = get_adjacent_pages(page, total_pages, window)
    return PaginationNav(
        current=page,
        total_pages=total_pages,
        pages=tuple(pages),
        has_first=bool(pages) and pages[0] > 1,
        has_last=bool(pages) and pages[-1] < total_pages,
        has_prev=page > 1,
        has_next=page < total_pages,
        prev=page - 1 if page > 1 else None,
        next=page + 1 if page < total_pages else None,
    )
