"""SQL Server adapter using aioodbc."""

from __future__ import annotations

from typing import Any

from poly_query.adapters.base import BaseAdapter, fetch_rows
from poly_query.adapters.protocol import ColumnInfo, QueryResult, TableSchema
from poly_query.core.config import DatabaseConfig
from poly_query.core.enums import DatabaseDialect

_DEFAULT_DRIVER = "ODBC Driver 18 for SQL Server"

_COLUMNS_QUERY = """
SELECT
    c.COLUMN_NAME,
    c.DATA_TYPE,
    c.IS_NULLABLE,
    c.COLUMN_DEFAULT,
    c.CHARACTER_MAXIMUM_LENGTH,
    CASE WHEN pk.COLUMN_NAME IS NOT NULL THEN 1 ELSE 0 END AS IS_PRIMARY_KEY
FROM INFORMATION_SCHEMA.COLUMNS c
LEFT JOIN (
    SELECT ku.COLUMN_NAME
    FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
    JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE ku
        ON tc.CONSTRAINT_NAME = ku.CONSTRAINT_NAME
    WHERE tc.CONSTRAINT_TYPE = 'PRIMARY KEY' AND tc.TABLE_NAME = @param1
) pk ON pk.COLUMN_NAME = c.COLUMN_NAME
WHERE c.TABLE_NAME = @param1
ORDER BY c.ORDINAL_POSITION
"""


def _build_dsn(config: DatabaseConfig, options: dict[str, Any]) -> str:
    """Build an ODBC connection string for SQL Server."""
    parts = [
        f"DRIVER={{{options.get('driver', _DEFAULT_DRIVER)}}}",
        f"SERVER={config.host or 'localhost'},{config.port or 1433}",
        f"DATABASE={config.database}",
    ]
    if config.username is not None:
        parts.append(f"UID={config.username}")
    if config.password is not None:
        parts.append(f"PWD={config.password}")
    parts.append(f"Encrypt={'yes' if options.get('encrypt', True) else 'no'}")
    if options.get("trust_server_certificate", True):
        parts.append("TrustServerCertificate=yes")
    return ";".join(parts)


class MssqlAdapter(BaseAdapter):
    """Asynchronous SQL Server adapter."""

    dialect_name = DatabaseDialect.MSSQL

    _tables_query = (
        "SELECT TABLE_NAME FROM INFORMATION_SCHEMA.TABLES "
        "WHERE TABLE_TYPE = 'BASE TABLE' ORDER BY TABLE_NAME"
    )

    async def _open(self, options: dict[str, Any]) -> Any:
        import aioodbc

        return await aioodbc.connect(dsn=_build_dsn(self.config, options), autocommit=True)

    async def _close(self, connection: Any) -> None:
        await connection.close()

    async def _run(self, connection: Any, sql: str, params: tuple[Any, ...]) -> QueryResult:
        async with connection.cursor() as cursor:
            await cursor.execute(sql, *params)
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
                name=row["COLUMN_NAME"],
                data_type=row["DATA_TYPE"],
                nullable=row["IS_NULLABLE"] == "YES",
                primary_key=bool(row["IS_PRIMARY_KEY"]),
                default=row["COLUMN_DEFAULT"],
                max_length=row["CHARACTER_MAXIMUM_LENGTH"],
            )
            for row in result.rows
        )
        return TableSchema(name=table_name, columns=columns)
