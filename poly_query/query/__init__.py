"""Query layer - SQL building, pagination and execution."""

from __future__ import annotations

from poly_query.query.builder import (
    QueryBuilder,
    build_conditions,
    build_delete,
    build_insert,
    build_update,
    escape_identifier,
)
from poly_query.query.dialects import DialectProfile, get_profile
from poly_query.query.executor import QueryExecutor
from poly_query.query.pagination import (
    PageInfo,
    PaginationNav,
    PaginationOptions,
    PaginationResult,
)
from poly_query.query.types import (
    JoinCondition,
    OrderCondition,
    QueryBuildResult,
    QueryCondition,
    QueryValidationResult,
    SelectField,
)

__all__ = [
    "QueryBuilder",
    "QueryExecutor",
    "escape_identifier",
    "build_conditions",
    "build_insert",
    "build_update",
    "build_delete",
    "DialectProfile",
    "get_profile",
    "QueryCondition",
    "SelectField",
    "JoinCondition",
    "OrderCondition",
    "QueryBuildResult",
    "QueryValidationResult",
    "PaginationOptions",
    "PaginationResult",
    "PageInfo",
    "PaginationNav",
]
