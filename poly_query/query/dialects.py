"""Per-dialect rendering rules.

A DialectProfile bundles everything that differs between the supported
databases: identifier quoting, placeholder syntax, pagination clause shape
and FOR UPDATE support. Builders look a profile up once and never branch on
the dialect name again.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from poly_query.core.enums import DatabaseDialect, PaginationStyle
from poly_query.core.exceptions import QueryBuildError


def _backtick(name: str) -> str:
    return f"`{name}`"


def _double_quote(name: str) -> str:
    return f'"{name}"'


def _bracket(name: str) -> str:
    return f"[{name}]"


def _upper_double_quote(name: str) -> str:
    return f'"{name.upper()}"'


def _qmark(index: int) -> str:
    return "?"


def _dollar(index: int) -> str:
    return f"${index}"


def _at_param(index: int) -> str:
    return f"@param{index}"


def _colon_param(index: int) -> str:
    return f":param{index}"


@dataclass(frozen=True)
class DialectProfile:
    """Rendering rules for one SQL dialect."""

    dialect: DatabaseDialect
    quote: Callable[[str], str]
    placeholder: Callable[[int], str]
    pagination: PaginationStyle
    supports_for_update: bool
    probe_query: str = "SELECT 1"
    default_port: int | None = None

    @property
    def name(self) -> str:
        return self.dialect.value

    def pagination_clause(self, limit: int | None, offset: int | None) -> str:
        """Render the pagination clause, or ``""`` when neither value is set."""
        if self.pagination is PaginationStyle.OFFSET_FETCH:
            if limit is not None:
                return f"OFFSET {offset or 0} ROWS FETCH NEXT {limit} ROWS ONLY"
            if offset is not None:
                return f"OFFSET {offset} ROWS"
            return ""

        if limit is not None:
            clause = f"LIMIT {limit}"
            if offset is not None:
                clause += f" OFFSET {offset}"
            return clause
        if offset is not None:
            return f"OFFSET {offset}"
        return ""


_PROFILES: dict[DatabaseDialect, DialectProfile] = {
    DatabaseDialect.MYSQL: DialectProfile(
        dialect=DatabaseDialect.MYSQL,
        quote=_backtick,
        placeholder=_qmark,
        pagination=PaginationStyle.LIMIT_OFFSET,
        supports_for_update=True,
        default_port=3306,
    ),
    DatabaseDialect.POSTGRESQL: DialectProfile(
        dialect=DatabaseDialect.POSTGRESQL,
        quote=_double_quote,
        placeholder=_dollar,
        pagination=PaginationStyle.LIMIT_OFFSET,
        supports_for_update=True,
        default_port=5432,
    ),
    DatabaseDialect.MSSQL: DialectProfile(
        dialect=DatabaseDialect.MSSQL,
        quote=_bracket,
        placeholder=_at_param,
        pagination=PaginationStyle.OFFSET_FETCH,
        supports_for_update=True,
        default_port=1433,
    ),
    DatabaseDialect.ORACLE: DialectProfile(
        dialect=DatabaseDialect.ORACLE,
        quote=_upper_double_quote,
        placeholder=_colon_param,
        pagination=PaginationStyle.OFFSET_FETCH,
        supports_for_update=True,
        probe_query="SELECT 1 FROM DUAL",
        default_port=1521,
    ),
    DatabaseDialect.SQLITE: DialectProfile(
        dialect=DatabaseDialect.SQLITE,
        quote=_backtick,
        placeholder=_qmark,
        pagination=PaginationStyle.LIMIT_OFFSET,
        supports_for_update=False,
    ),
}


def get_profile(dialect: DatabaseDialect | DialectProfile | str) -> DialectProfile:
    """Resolve a dialect name, enum member or profile to its DialectProfile.

    Raises:
        QueryBuildError: If the dialect is not supported.
    """
    if isinstance(dialect, DialectProfile):
        return dialect
    try:
        key = DatabaseDialect(dialect.lower() if isinstance(dialect, str) else dialect)
    except ValueError:
        raise QueryBuildError(
            f"Unsupported SQL dialect: {dialect!r}",
            code="UNSUPPORTED_DIALECT",
            context={"dialect": str(dialect)},
        ) from None
    return _PROFILES[key]
