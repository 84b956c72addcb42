"""PostgreSQL adapter using psycopg (v3+) async support."""

from __future__ import annotations

from typing import Any

from poly_query.adapters.base import BaseAdapter, fetch_rows
from poly_query.adapters.protocol import ColumnInfo, QueryResult, TableSchema
from poly_query.core.config import DatabaseConfig
from poly_query.core.enums import DatabaseDialect

_COLUMNS_QUERY = """
SELECT
    c.column_name,
    c.data_type,
    c.is_nullable,
    c.column_default,
    c.character_maximum_length,
    CASE WHEN pk.column_name IS NOT NULL THEN 1 ELSE 0 END AS is_primary_key
FROM information_schema.columns c
LEFT JOIN (
    SELECT ku.column_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage ku
        ON tc.constraint_name = ku.constraint_name
        AND tc.table_schema = ku.table_schema
    WHERE tc.constraint_type = 'PRIMARY KEY'
        AND tc.table_schema = 'public'
        AND tc.table_name = $1
) pk ON pk.column_name = c.column_name
WHERE c.table_schema = 'public' AND c.table_name = $1
ORDER BY c.ordinal_position
"""


def _build_conninfo(config: DatabaseConfig, options: dict[str, Any]) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    parts.append(f"port={config.port or 5432}")
    if config.username is not None:
        parts.append(f"user={config.username}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    if options.get("sslmode"):
        parts.append(f"sslmode={options['sslmode']}")
    if options.get("timeout"):
        parts.append(f"connect_timeout={int(options['timeout'])}")
    return " ".join(parts)


class PostgresqlAdapter(BaseAdapter):
    """Asynchronous PostgreSQL adapter."""

    dialect_name = DatabaseDialect.POSTGRESQL

    _tables_query = (
        "SELECT table_name FROM information_schema.tables "
        "WHERE table_schema = 'public' AND table_type = 'BASE TABLE' "
        "ORDER BY table_name"
    )

    async def _open(self, options: dict[str, Any]) -> Any:
        import psycopg

        return await psycopg.AsyncConnection.connect(
            _build_conninfo(self.config, options), autocommit=True
        )

    async def _close(self, connection: Any) -> None:
        await connection.close()

    async def _run(self, connection: Any, sql: str, params: tuple[Any, ...]) -> QueryResult:
        async with connection.cursor() as cursor:
            await cursor.execute(sql, params or None)
            rows = await fetch_rows(cursor)
            if cursor.description is not None:
                return QueryResult(rows=rows, row_count=len(rows))
            return QueryResult(rows=[], row_count=0, affected_rows=cursor.rowcount)

    async def get_table_schema(self, table_name: str) -> TableSchema:
        result = await self.execute(_COLUMNS_QUERY, [table_name])
        if not result.rows:
            raise self._table_not_found(table_name)

        columns = tuple(
            ColumnInfo(
                name=row["column_name"],
                data_type=row["data_type"],
                nullable=row["is_nullable"] == "YES",
                primary_key=bool(row["is_primary_key"]),
                default=row["column_default"],
                max_length=row["character_maximum_length"],
            )
            for row in result.rows
        )
        return TableSchema(name=table_name, columns=columns)
