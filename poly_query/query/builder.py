"""Dialect-aware SELECT builder and parameterized DML helpers.

QueryBuilder accumulates clauses through a fluent, mutate-and-return-self
API and renders them with ``build()``. Nothing is validated until then; all
structural problems surface as QueryBuildError at build time.

Values never appear in the rendered SQL: every bound value becomes a
placeholder from the dialect's profile, and the parameters are returned in
placeholder order.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from poly_query.core.enums import (
    DatabaseDialect,
    JoinType,
    PaginationStyle,
    QueryOperator,
    SortDirection,
)
from poly_query.core.exceptions import QueryBuildError
from poly_query.query.dialects import DialectProfile, get_profile
from poly_query.query.types import (
    JoinCondition,
    OrderCondition,
    QueryBuildResult,
    QueryCondition,
    QueryParameter,
    QueryValidationResult,
    SelectField,
)

# Characters allowed in a bare identifier component
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_$]")

_NULL_CHECKS = frozenset({QueryOperator.IS_NULL, QueryOperator.IS_NOT_NULL})
_LIST_OPERATORS = frozenset({QueryOperator.IN, QueryOperator.NOT_IN})
_RANGE_OPERATORS = frozenset({QueryOperator.BETWEEN, QueryOperator.NOT_BETWEEN})

_UNORDERED_FETCH_WARNING = (
    "OFFSET/FETCH pagination without ORDER BY returns rows in an undefined order"
)

Dialect = DatabaseDialect | DialectProfile | str


# ---------------------------------------------------------------------------
# Identifier escaping
# ---------------------------------------------------------------------------


def _quote_component(component: str, profile: DialectProfile, original: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("", component)
    if not cleaned:
        raise QueryBuildError(
            f"Identifier {original!r} is empty after sanitization",
            code="INVALID_IDENTIFIER",
            context={"identifier": original, "dialect": profile.name},
        )
    return profile.quote(cleaned)


def _require_str(identifier: Any) -> str:
    if not isinstance(identifier, str):
        raise QueryBuildError(
            f"Identifier must be a string, got {type(identifier).__name__}",
            code="INVALID_IDENTIFIER",
        )
    return identifier


def escape_identifier(identifier: str, dialect: Dialect = DatabaseDialect.MYSQL) -> str:
    """Quote *identifier* for *dialect*.

    * ``*`` is returned unchanged.
    * Anything containing ``(`` or `` as `` (any case) is treated as a raw
      SQL expression, e.g. ``COUNT(*) as total``, and returned unchanged.
    * ``table.column`` is escaped component-wise and rejoined with ``.``.
    * Otherwise characters outside ``[A-Za-z0-9_$]`` are stripped and the
      result is quoted per dialect.

    Raises:
        QueryBuildError: If the identifier (or a component) sanitizes to empty.
    """
    identifier = _require_str(identifier)
    profile = get_profile(dialect)

    if identifier == "*":
        return identifier
    if "(" in identifier or " as " in identifier.lower():
        return identifier
    if "." in identifier:
        return ".".join(
            part if part == "*" else _quote_component(part, profile, identifier)
            for part in identifier.split(".")
        )
    return _quote_component(identifier, profile, identifier)


def _quote_name(name: str, profile: DialectProfile) -> str:
    """Strictly quote a table or column name for DML; no raw expressions."""
    name = _require_str(name)
    return ".".join(_quote_component(part, profile, name) for part in name.split("."))


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------


def _normalize_operator(operator: QueryOperator | str) -> QueryOperator:
    if isinstance(operator, QueryOperator):
        return operator
    try:
        return QueryOperator(" ".join(str(operator).split()).upper())
    except ValueError:
        raise QueryBuildError(
            f"Unsupported operator: {operator!r}",
            code="UNSUPPORTED_OPERATOR",
            context={"operator": str(operator)},
        ) from None


def _as_values(value: Any) -> tuple[Any, ...] | None:
    if isinstance(value, (str, bytes, bytearray)):
        return None
    if isinstance(value, Sequence):
        return tuple(value)
    return None


def _bind(value: QueryParameter, params: list[QueryParameter], profile: DialectProfile) -> str:
    params.append(value)
    return profile.placeholder(len(params))


def _render_condition(
    condition: QueryCondition,
    params: list[QueryParameter],
    profile: DialectProfile,
) -> str:
    operator = _normalize_operator(condition.operator)
    field = escape_identifier(condition.field, profile)

    if operator in _NULL_CHECKS:
        return f"{field} {operator.value}"

    if operator in _LIST_OPERATORS:
        values = _as_values(condition.value)
        if not values:
            raise QueryBuildError(
                f"{operator.value} requires a non-empty array value",
                code="INVALID_CONDITION_VALUE",
                context={"field": condition.field, "operator": operator.value},
            )
        placeholders = ", ".join(_bind(v, params, profile) for v in values)
        return f"{field} {operator.value} ({placeholders})"

    if operator in _RANGE_OPERATORS:
        values = _as_values(condition.value)
        if values is None or len(values) != 2:
            raise QueryBuildError(
                f"{operator.value} requires exactly two values",
                code="INVALID_CONDITION_VALUE",
                context={"field": condition.field, "operator": operator.value},
            )
        low = _bind(values[0], params, profile)
        high = _bind(values[1], params, profile)
        return f"{field} {operator.value} {low} AND {high}"

    return f"{field} {operator.value} {_bind(condition.value, params, profile)}"  # type: ignore[arg-type]


def build_conditions(
    conditions: Sequence[QueryCondition],
    params: list[QueryParameter],
    dialect: Dialect = DatabaseDialect.MYSQL,
) -> str:
    """Fold *conditions* into an AND-joined predicate, appending to *params*.

    Numbered placeholders continue from ``len(params)``, so WHERE and HAVING
    share one contiguous sequence when rendered against the same list.
    """
    profile = get_profile(dialect)
    return " AND ".join(_render_condition(c, params, profile) for c in conditions)


# ---------------------------------------------------------------------------
# DML helpers
# ---------------------------------------------------------------------------


def build_insert(
    table: str,
    data: Mapping[str, QueryParameter],
    dialect: Dialect = DatabaseDialect.MYSQL,
) -> QueryBuildResult:
    """Build ``INSERT INTO table (cols...) VALUES (placeholders...)``."""
    profile = get_profile(dialect)
    quoted_table = _quote_name(table, profile)
    if not data:
        raise QueryBuildError(
            "Insert operation requires data",
            code="MISSING_DATA",
            context={"table": table},
        )

    params: list[QueryParameter] = []
    columns = ", ".join(_quote_name(column, profile) for column in data)
    placeholders = ", ".join(_bind(value, params, profile) for value in data.values())
    query = f"INSERT INTO {quoted_table} ({columns}) VALUES ({placeholders})"
    return QueryBuildResult(query=query, params=tuple(params))


def _equality_list(
    criteria: Mapping[str, QueryParameter],
    params: list[QueryParameter],
    profile: DialectProfile,
) -> list[str]:
    return [
        f"{_quote_name(column, profile)} = {_bind(value, params, profile)}"
        for column, value in criteria.items()
    ]


def build_update(
    table: str,
    data: Mapping[str, QueryParameter],
    criteria: Mapping[str, QueryParameter],
    dialect: Dialect = DatabaseDialect.MYSQL,
) -> QueryBuildResult:
    """Build ``UPDATE table SET ... WHERE ...``; SET values bind before criteria."""
    profile = get_profile(dialect)
    quoted_table = _quote_name(table, profile)
    if not data:
        raise QueryBuildError(
            "Update operation requires data",
            code="MISSING_DATA",
            context={"table": table},
        )
    if not criteria:
        raise QueryBuildError(
            "Update operation requires criteria",
            code="MISSING_CRITERIA",
            context={"table": table},
        )

    params: list[QueryParameter] = []
    set_clause = ", ".join(_equality_list(data, params, profile))
    where_clause = " AND ".join(_equality_list(criteria, params, profile))
    query = f"UPDATE {quoted_table} SET {set_clause} WHERE {where_clause}"
    return QueryBuildResult(query=query, params=tuple(params))


def build_delete(
    table: str,
    criteria: Mapping[str, QueryParameter],
    dialect: Dialect = DatabaseDialect.MYSQL,
) -> QueryBuildResult:
    """Build ``DELETE FROM table WHERE ...``. Criteria are mandatory."""
    profile = get_profile(dialect)
    quoted_table = _quote_name(table, profile)
    if not criteria:
        raise QueryBuildError(
            "Delete operation requires criteria",
            code="MISSING_CRITERIA",
            context={"table": table},
        )

    params: list[QueryParameter] = []
    where_clause = " AND ".join(_equality_list(criteria, params, profile))
    query = f"DELETE FROM {quoted_table} WHERE {where_clause}"
    return QueryBuildResult(query=query, params=tuple(params))


# ---------------------------------------------------------------------------
# SELECT builder
# ---------------------------------------------------------------------------


def _check_count(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise QueryBuildError(
            f"{name} must be a non-negative integer, got {value!r}",
            code="INVALID_PAGINATION",
            context={name: value},
        )
    return value


def _normalize_direction(direction: SortDirection | str) -> SortDirection:
    try:
        return SortDirection(str(getattr(direction, "value", direction)).upper())
    except ValueError:
        raise QueryBuildError(
            f"Invalid sort direction: {direction!r}",
            code="INVALID_SORT_DIRECTION",
        ) from None


def _normalize_join_type(join_type: JoinType | str) -> JoinType:
    try:
        return JoinType(str(getattr(join_type, "value", join_type)).upper())
    except ValueError:
        raise QueryBuildError(
            f"Invalid join type: {join_type!r}",
            code="INVALID_JOIN_TYPE",
        ) from None


class QueryBuilder:
    """Fluent SELECT builder for one dialect.

    Example::

        result = (
            QueryBuilder("postgresql")
            .select(["id", "name"])
            .from_("users")
            .where("age", ">", 18)
            .limit(10)
            .offset(5)
            .build()
        )
        # SELECT "id", "name" FROM "users" WHERE "age" > $1 LIMIT 10 OFFSET 5
    """

    build_insert = staticmethod(build_insert)
    build_update = staticmethod(build_update)
    build_delete = staticmethod(build_delete)

    def __init__(self, dialect: Dialect = DatabaseDialect.MYSQL) -> None:
        self._profile = get_profile(dialect)
        self._select_fields: list[SelectField] = [SelectField("*")]
        self._from_table: str | None = None
        self._from_alias: str | None = None
        self._joins: list[JoinCondition] = []
        self._where: list[QueryCondition] = []
        self._group_by: list[str] = []
        self._having: list[QueryCondition] = []
        self._order: list[OrderCondition] = []
        self._limit: int | None = None
        self._offset: int | None = None
        self._distinct = False
        self._for_update = False

    @property
    def dialect(self) -> DatabaseDialect:
        return self._profile.dialect

    @property
    def profile(self) -> DialectProfile:
        return self._profile

    def escape_identifier(self, identifier: str) -> str:
        """Quote *identifier* with this builder's dialect rules."""
        return escape_identifier(identifier, self._profile)

    # --- clause accumulation ---

    def select(self, fields: str | SelectField | Sequence[str | SelectField]) -> QueryBuilder:
        """Replace the selected fields."""
        if isinstance(fields, (str, SelectField)):
            fields = [fields]
        self._select_fields = [f if isinstance(f, SelectField) else SelectField(f) for f in fields]
        return self

    def from_(self, table: str, alias: str | None = None) -> QueryBuilder:
        self._from_table = table
        self._from_alias = alias
        return self

    def where(
        self,
        field: str,
        operator: QueryOperator | str,
        value: QueryParameter | Sequence[QueryParameter] = None,
    ) -> QueryBuilder:
        self._where.append(QueryCondition(field, operator, value))
        return self

    def where_in(self, field: str, values: Sequence[QueryParameter]) -> QueryBuilder:
        return self.where(field, QueryOperator.IN, values)

    def where_null(self, field: str) -> QueryBuilder:
        return self.where(field, QueryOperator.IS_NULL)

    def where_not_null(self, field: str) -> QueryBuilder:
        return self.where(field, QueryOperator.IS_NOT_NULL)

    def join(
        self,
        table: str,
        on: str,
        join_type: JoinType | str = JoinType.INNER,
        alias: str | None = None,
    ) -> QueryBuilder:
        """Add a JOIN clause; *on* is emitted verbatim."""
        self._joins.append(JoinCondition(join_type, table, on, alias))
        return self

    def left_join(self, table: str, on: str, alias: str | None = None) -> QueryBuilder:
        return self.join(table, on, JoinType.LEFT, alias)

    def right_join(self, table: str, on: str, alias: str | None = None) -> QueryBuilder:
        return self.join(table, on, JoinType.RIGHT, alias)

    def full_join(self, table: str, on: str, alias: str | None = None) -> QueryBuilder:
        return self.join(table, on, JoinType.FULL, alias)

    def cross_join(self, table: str, alias: str | None = None) -> QueryBuilder:
        return self.join(table, "", JoinType.CROSS, alias)

    def order_by(
        self, field: str, direction: SortDirection | str = SortDirection.ASC
    ) -> QueryBuilder:
        self._order.append(OrderCondition(field, direction))
        return self

    def group_by(self, fields: str | Sequence[str]) -> QueryBuilder:
        """Replace the GROUP BY fields."""
        self._group_by = [fields] if isinstance(fields, str) else list(fields)
        return self

    def having(
        self,
        field: str,
        operator: QueryOperator | str,
        value: QueryParameter | Sequence[QueryParameter] = None,
    ) -> QueryBuilder:
        self._having.append(QueryCondition(field, operator, value))
        return self

    def limit(self, count: int) -> QueryBuilder:
        self._limit = count
        return self

    def offset(self, count: int) -> QueryBuilder:
        self._offset = count
        return self

    def distinct(self, enabled: bool = True) -> QueryBuilder:
        self._distinct = enabled
        return self

    def for_update(self, enabled: bool = True) -> QueryBuilder:
        """Request row locking; ignored for dialects without FOR UPDATE."""
        self._for_update = enabled
        return self

    # --- rendering ---

    def _render_select_field(self, field: SelectField) -> str:
        rendered = self.escape_identifier(field.field)
        if field.alias:
            rendered += f" AS {self.escape_identifier(field.alias)}"
        return rendered

    def _render_join(self, join: JoinCondition) -> str:
        join_type = _normalize_join_type(join.type)
        clause = f"{join_type.value} JOIN {self.escape_identifier(join.table)}"
        if join.alias:
            clause += f" AS {self.escape_identifier(join.alias)}"
        if join_type is not JoinType.CROSS or join.on:
            clause += f" ON {join.on}"
        return clause

    def build(self) -> QueryBuildResult:
        """Render the accumulated clauses.

        Raises:
            QueryBuildError: On missing FROM table, invalid identifiers,
                operator arity violations or invalid pagination values.
        """
        if not self._from_table:
            raise QueryBuildError(
                "FROM table is required",
                code="MISSING_FROM_TABLE",
                context={"dialect": self._profile.name},
            )

        profile = self._profile
        params: list[QueryParameter] = []
        warnings: list[str] = []
        parts: list[str] = []

        fields = self._select_fields or [SelectField("*")]
        select_list = ", ".join(self._render_select_field(f) for f in fields)
        parts.append(f"SELECT {'DISTINCT ' if self._distinct else ''}{select_list}")

        from_clause = f"FROM {self.escape_identifier(self._from_table)}"
        if self._from_alias:
            from_clause += f" AS {self.escape_identifier(self._from_alias)}"
        parts.append(from_clause)

        parts.extend(self._render_join(join) for join in self._joins)

        if self._where:
            parts.append(f"WHERE {build_conditions(self._where, params, profile)}")

        if self._group_by:
            group_list = ", ".join(self.escape_identifier(f) for f in self._group_by)
            parts.append(f"GROUP BY {group_list}")

        if self._having:
            parts.append(f"HAVING {build_conditions(self._having, params, profile)}")

        if self._order:
            order_list = ", ".join(
                f"{self.escape_identifier(o.field)} {_normalize_direction(o.direction).value}"
                for o in self._order
            )
            parts.append(f"ORDER BY {order_list}")

        limit = None if self._limit is None else _check_count(self._limit, "limit")
        offset = None if self._offset is None else _check_count(self._offset, "offset")
        pagination = profile.pagination_clause(limit, offset)
        if pagination:
            parts.append(pagination)
            if profile.pagination is PaginationStyle.OFFSET_FETCH and not self._order:
                warnings.append(_UNORDERED_FETCH_WARNING)

        if self._for_update and profile.supports_for_update:
            parts.append("FOR UPDATE")

        return QueryBuildResult(
            query=" ".join(parts),
            params=tuple(params),
            warnings=tuple(warnings) if warnings else None,
        )

    def validate_query(self) -> QueryValidationResult:
        """Structural checks only; this is not a SQL correctness analyzer."""
        errors: list[QueryBuildError] = []
        warnings: list[str] = []

        if not self._from_table:
            errors.append(QueryBuildError("FROM table is required", code="MISSING_FROM_TABLE"))
        if not self._select_fields:
            warnings.append("No SELECT fields specified, using *")

        return QueryValidationResult(
            valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
        )
