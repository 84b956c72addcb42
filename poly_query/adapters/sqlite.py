"""SQLite adapter using aiosqlite."""

from __future__ import annotations

from typing import Any

from poly_query.adapters.base import BaseAdapter, fetch_rows
from poly_query.adapters.protocol import ColumnInfo, QueryResult, TableSchema
from poly_query.core.enums import DatabaseDialect
from poly_query.core.exceptions import ConfigurationError
from poly_query.query.builder import escape_identifier

_JOURNAL_MODES = frozenset({"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"})


class SqliteAdapter(BaseAdapter):
    """Asynchronous SQLite adapter.

    Connections run in autocommit mode (``isolation_level=None``) so each
    statement is committed as it executes.
    """

    dialect_name = DatabaseDialect.SQLITE

    _tables_query = (
        "SELECT name FROM sqlite_master "
        "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
    )

    async def _open(self, options: dict[str, Any]) -> Any:
        import aiosqlite

        journal_mode = options.get("journal_mode")
        if journal_mode:
            journal_mode = str(journal_mode).upper()
            if journal_mode not in _JOURNAL_MODES:
                raise ConfigurationError(
                    f"Invalid SQLite journal_mode: {options['journal_mode']!r}",
                    code="INVALID_JOURNAL_MODE",
                    context={"allowed": sorted(_JOURNAL_MODES)},
                )

        conn = await aiosqlite.connect(self.config.target, isolation_level=None)
        if journal_mode:
            try:
                await conn.execute(f"PRAGMA journal_mode={journal_mode}")
            except Exception:
                await conn.close()
                raise
        return conn

    async def _close(self, connection: Any) -> None:
        await connection.close()

    async def _run(self, connection: Any, sql: str, params: tuple[Any, ...]) -> QueryResult:
        async with connection.execute(sql, params) as cursor:
            rows = await fetch_rows(cursor)
            if cursor.description is not None:
                return QueryResult(rows=rows, row_count=len(rows))
            return QueryResult(
                rows=[],
                row_count=0,
                affected_rows=cursor.rowcount if cursor.rowcount >= 0 else None,
                insert_id=cursor.lastrowid,
            )

    async def get_table_schema(self, table_name: str) -> TableSchema:
        quoted = escape_identifier(table_name, self.dialect)
        result = await self.execute(f"PRAGMA table_info({quoted})")
        if not result.rows:
            raise self._table_not_found(table_name)

        columns = tuple(
            ColumnInfo(
                name=row["name"],
                data_type=row["type"],
                nullable=not row["notnull"],
                primary_key=bool(row["pk"]),
                default=row["dflt_value"],
            )
            for row in result.rows
        )
        return TableSchema(name=table_name, columns=columns)
