"""Unit tests for pagination helpers."""

from __future__ import annotations

import pytest

from poly_query.core.exceptions import QueryBuildError
from poly_query.query.pagination import (
    add_pagination_to_query,
    build_count_query,
    build_limit_clause,
    calculate_offset,
    calculate_total_pages,
    create_pagination_result,
    generate_pagination_nav,
    get_adjacent_pages,
    get_pagination_summary,
    is_valid_pagination,
    validate_pagination_options,
)


class TestValidatePaginationOptions:
    def test_defaults(self) -> None:
        options = validate_pagination_options()
        assert (options.page, options.page_size, options.max_page_size) == (1, 20, 1000)

    def test_clamps_to_bounds(self) -> None:
        options = validate_pagination_options(page=0, page_size=5000)
        assert options.page == 1
        assert options.page_size == 1000

    def test_negative_page_size(self) -> None:
        assert validate_pagination_options(page_size=-5).page_size == 1

    def test_custom_max(self) -> None:
        assert validate_pagination_options(page_size=100, max_page_size=50).page_size == 50


class TestArithmetic:
    def test_offset(self) -> None:
        assert calculate_offset(1, 10) == 0
        assert calculate_offset(3, 10) == 20

    def test_total_pages(self) -> None:
        assert calculate_total_pages(0, 10) == 0
        assert calculate_total_pages(20, 10) == 2
        assert calculate_total_pages(21, 10) == 3

    def test_limit_clause(self) -> None:
        assert build_limit_clause("mysql", 3, 10) == "LIMIT 10 OFFSET 20"
        assert build_limit_clause("oracle", 2, 5) == "OFFSET 5 ROWS FETCH NEXT 5 ROWS ONLY"
        assert build_limit_clause("mssql", 1, 10) == "OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY"


class TestBuildCountQuery:
    def test_strips_order_and_limit(self) -> None:
        query = "SELECT id, name FROM users WHERE age > ? ORDER BY name LIMIT 10 OFFSET 20"
        assert build_count_query(query) == "SELECT COUNT(*) AS total FROM users WHERE age > ?"

    def test_strips_offset_fetch(self) -> None:
        query = "SELECT * FROM [t] ORDER BY [id] ASC OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"
        assert build_count_query(query) == "SELECT COUNT(*) AS total FROM [t]"

    def test_grouped_query_wrapped(self) -> None:
        query = "SELECT dept, COUNT(*) FROM emp GROUP BY dept ORDER BY dept"
        assert build_count_query(query) == (
            "SELECT COUNT(*) AS total FROM (SELECT dept, COUNT(*) FROM emp GROUP BY dept) "
            "count_subquery"
        )

    def test_missing_from(self) -> None:
        with pytest.raises(QueryBuildError) as exc_info:
            build_count_query("SELECT 1")
        assert exc_info.value.code == "MISSING_FROM_TABLE"

    def test_from_inside_identifier_is_ignored(self) -> None:
        query = "SELECT from_date FROM events"
        assert build_count_query(query) == "SELECT COUNT(*) AS total FROM events"


class TestAddPagination:
    def test_adds_default_order(self) -> None:
        assert add_pagination_to_query("SELECT * FROM t", "mysql", 2, 10) == (
            "SELECT * FROM t ORDER BY 1 LIMIT 10 OFFSET 10"
        )

    def test_keeps_existing_order(self) -> None:
        assert add_pagination_to_query("SELECT * FROM t ORDER BY id", "mssql", 1, 5) == (
            "SELECT * FROM t ORDER BY id OFFSET 0 ROWS FETCH NEXT 5 ROWS ONLY"
        )


class TestPaginationResult:
    def test_middle_page(self) -> None:
        result = create_pagination_result([{"id": 11}], total=45, page=2, page_size=10)
        assert result.data == [{"id": 11}]
        info = result.pagination
        assert info.total_pages == 5
        assert info.has_next is True
        assert info.has_prev is True

    def test_last_page(self) -> None:
        info = create_pagination_result([], total=45, page=5, page_size=10).pagination
        assert info.has_next is False

    def test_summary(self) -> None:
        assert get_pagination_summary(2, 10, 45) == "Showing 11-20 of 45 (page 2/5)"
        assert get_pagination_summary(5, 10, 45) == "Showing 41-45 of 45 (page 5/5)"

    def test_summary_of_empty_result(self) -> None:
        assert get_pagination_summary(1, 10, 0) == "No results"

    def test_summary_past_last_page(self) -> None:
        assert get_pagination_summary(9, 10, 45) == "Showing 0 of 45 (page 9/5)"

    def test_zero_page_size_is_rejected(self) -> None:
        with pytest.raises(QueryBuildError) as exc_info:
            get_pagination_summary(1, 0, 45)
        assert exc_info.value.code == "INVALID_PAGINATION"
        with pytest.raises(QueryBuildError):
            calculate_total_pages(10, 0)

    @pytest.mark.parametrize(
        ("page", "page_size", "total", "expected"),
        [
            (1, 10, 0, True),
            (2, 10, 0, False),
            (5, 10, 45, True),
            (6, 10, 45, False),
            (0, 10, 5, False),
            (1, 0, 5, False),
        ],
    )
    def test_is_valid_pagination(self, page: int, page_size: int, total: int, expected: bool) -> None:
        assert is_valid_pagination(page, page_size, total) is expected


class TestNavigation:
    def test_adjacent_pages(self) -> None:
        assert get_adjacent_pages(5, 10) == [3, 4, 5, 6, 7]
        assert get_adjacent_pages(1, 10) == [1, 2, 3]
        assert get_adjacent_pages(1, 0) == []

    def test_nav_middle(self) -> None:
        nav = generate_pagination_nav(5, 10, 100)
        assert nav.total_pages == 10
        assert nav.pages == (3, 4, 5, 6, 7)
        assert nav.has_first is True
        assert nav.has_last is True
        assert (nav.prev, nav.next) == (4, 6)

    def test_nav_empty(self) -> None:
        nav = generate_pagination_nav(1, 10, 0)
        assert nav.pages == ()
        assert nav.has_first is False
        assert nav.has_last is False
        assert nav.prev is None
        assert nav.next is None
