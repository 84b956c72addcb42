"""Placeholder translation from builder syntax to driver paramstyle.

The builder renders the placeholders in the dialect contract (``?``, ``$n``,
``@paramN``, ``:paramN``). Some drivers expect something else:

* aiomysql and psycopg use ``%s`` (``format`` paramstyle),
* aioodbc uses ``?`` (``qmark``).

String literals and quoted identifiers are left untouched, except that
``%`` is doubled for the ``%s`` drivers, which interpolate the whole text.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from functools import lru_cache
from typing import Any

from poly_query.core.enums import DatabaseDialect
from poly_query.core.exceptions import ExecutionError

# Single-quoted literals ('' escapes) and double-quoted identifiers ("" escapes)
_QUOTED_PATTERN = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"")

_QMARK_PATTERN = re.compile(r"\?")
_DOLLAR_PATTERN = re.compile(r"(?<![\w$])\$(\d+)\b")
_AT_PARAM_PATTERN = re.compile(r"(?<![\w@])@param(\d+)\b")


def _split_quoted(sql: str) -> list[tuple[bool, str]]:
    """Split *sql* into ``(is_quoted, text)`` segments."""
    segments: list[tuple[bool, str]] = []
    last_end = 0
    for match in _QUOTED_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            segments.append((False, sql[last_end:start]))
        segments.append((True, match.group()))
        last_end = end
    if last_end < len(sql):
        segments.append((False, sql[last_end:]))
    return segments


@lru_cache(maxsize=256)
def _convert(sql: str, pattern: re.Pattern[str], target: str, escape_percent: bool) -> tuple[str, tuple[int, ...]]:
    """Rewrite placeholders matched by *pattern* to *target*.

    Returns the new SQL and the 1-based parameter index for each emitted
    placeholder, in order (``0`` for unnumbered placeholders).
    """
    order: list[int] = []

    def _replace(match: re.Match[str]) -> str:
        order.append(int(match.group(1)) if match.groups() else 0)
        return target

    parts: list[str] = []
    for quoted, text in _split_quoted(sql):
        if escape_percent:
            text = text.replace("%", "%%")
        parts.append(text if quoted else pattern.sub(_replace, text))
    return "".join(parts), tuple(order)


def _reorder(params: tuple[Any, ...], order: tuple[int, ...], sql: str) -> tuple[Any, ...]:
    try:
        return tuple(params[index - 1] for index in order)
    except IndexError:
        raise ExecutionError(
            f"Placeholder index exceeds the {len(params)} supplied parameters",
            code="PARAMETER_BINDING_FAILED",
            context={"query": sql, "params": list(params)},
        ) from None


def to_driver_params(
    sql: str,
    params: Sequence[Any] | None,
    dialect: DatabaseDialect | str,
) -> tuple[str, tuple[Any, ...]]:
    """Convert builder placeholders in *sql* to *dialect*'s driver paramstyle.

    Args:
        sql: SQL rendered by QueryBuilder (or hand-written in the same style).
        params: Ordered parameters bound to the placeholders.
        dialect: Target dialect.

    Returns:
        ``(sql, params)`` ready for the driver's ``execute``.
    """
    values = tuple(params or ())
    dialect = DatabaseDialect(dialect)

    if not values or dialect in (DatabaseDialect.SQLITE, DatabaseDialect.ORACLE):
        return sql, values

    if dialect is DatabaseDialect.MYSQL:
        converted, _ = _convert(sql, _QMARK_PATTERN, "%s", True)
        return converted, values

    if dialect is DatabaseDialect.POSTGRESQL:
        converted, order = _convert(sql, _DOLLAR_PATTERN, "%s", True)
        return converted, _reorder(values, order, sql)

    converted, order = _convert(sql, _AT_PARAM_PATTERN, "?", False)
    return converted, _reorder(values, order, sql)
