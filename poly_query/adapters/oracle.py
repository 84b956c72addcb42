"""Oracle adapter using oracledb async support."""

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
    c.nullable,
    c.data_default,
    c.data_length,
    CASE WHEN pk.column_name IS NOT NULL THEN 1 ELSE 0 END AS is_primary_key
FROM user_tab_columns c
LEFT JOIN (
    SELECT cc.column_name
    FROM user_constraints uc
    JOIN user_cons_columns cc ON uc.constraint_name = cc.constraint_name
    WHERE uc.constraint_type = 'P' AND uc.table_name = :param1
) pk ON pk.column_name = c.column_name
WHERE c.table_name = :param2
ORDER BY c.column_id
"""


def _build_dsn(config: DatabaseConfig) -> str:
    """Build an Oracle DSN string from config fields (host:port/service)."""
    return f"{config.host or 'localhost'}:{config.port or 1521}/{config.database}"


class OracleAdapter(BaseAdapter):
    """Asynchronous Oracle adapter.

    Column names come back upper-case from Oracle and are lowered in result
    rows.
    """

    dialect_name = DatabaseDialect.ORACLE

    _tables_query = "SELECT table_name FROM user_tables ORDER BY table_name"

    async def _open(self, options: dict[str, Any]) -> Any:
        import oracledb

        conn = await oracledb.connect_async(
            user=self.config.username,
            password=self.config.password,
            dsn=_build_dsn(self.config),
        )
        conn.autocommit = True
        return conn

    async def _close(self, connection: Any) -> None:
        await connection.close()

    async def _run(self, connection: Any, sql: str, params: tuple[Any, ...]) -> QueryResult:
        cursor = connection.cursor()
        try:
            await cursor.execute(sql, list(params))
            rows = await fetch_rows(cursor, lower_keys=True)
            if cursor.description is not None:
                return QueryResult(rows=rows, row_count=len(rows))
            return QueryResult(rows=[], row_count=0, affected_rows=cursor.rowcount)
        finally:
            cursor.close()

    async def get_table_schema(self, table_name: str) -> TableSchema:
        name = table_name.upper()
        result = await self.execute(_COLUMNS_QUERY, [name, name])
        if not result.rows:
            raise self._table_not_found(table_name)

        columns = tuple(
            ColumnInfo(
                name=row["column_name"],
                data_type=row["data_type"],
                nullable=row["nullable"] == "Y",
                primary_key=bool(row["is_primary_key"]),
                default=row["data_default"],
                max_length=row["data_length"],
            )
            for row in result.rows
        )
        return TableSchema(name=table_name, columns=columns)
