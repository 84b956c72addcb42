"""Query builder value types.

Frozen dataclasses describing the clauses a QueryBuilder accumulates and
the result it renders.
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Union

from poly_query.core.enums import JoinType, QueryOperator, SortDirection
from poly_query.core.exceptions import QueryBuildError

QueryParameter = Union[str, int, float, bool, bytes, _dt.date, _dt.datetime, None]


@dataclass(frozen=True)
class QueryCondition:
    """One ``field <operator> value`` predicate."""

    field: str
    operator: QueryOperator | str
    value: QueryParameter | Sequence[QueryParameter] = None


@dataclass(frozen=True)
class SelectField:
    field: str
    alias: str | None = None


@dataclass(frozen=True)
class JoinCondition:
    """A JOIN clause; ``on`` is emitted verbatim."""

    type: JoinType | str
    table: str
    on: str = ""
    alias: str | None = None


@dataclass(frozen=True)
class OrderCondition:
    field: str
    direction: SortDirection | str = SortDirection.ASC


@dataclass(frozen=True)
class QueryBuildResult:
    """Rendered SQL and its ordered parameters.

    The Nth placeholder in ``query`` binds to ``params[N]``.
    """

    query: str
    params: tuple[QueryParameter, ...] = ()
    warnings: tuple[str, ...] | None = None


@dataclass(frozen=True)
class QueryValidationResult:
    valid: bool
    errors: tuple[QueryBuildError, ...] = field(default_factory=tuple)
    warnings: tuple[str, ...] = field(default_factory=tuple)
