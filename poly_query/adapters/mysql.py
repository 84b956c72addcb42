"""MySQL adapter using aiomysql."""

from __future__ import annotations

from typing import Any

from poly_query.adapters.base import BaseAdapter, fetch_rows
from poly_query.adapters.protocol import ColumnInfo, QueryResult, TableSchema
from poly_query.core.enums import DatabaseDialect

_COLUMNS_QUERY = (
    "SELECT COLUMN_NAME, DATA_TYPE, IS_NULLABLE, COLUMN_KEY, COLUMN_DEFAULT, "
    "CHARACTER_MAXIMUM_LENGTH "
    "FROM information_schema.COLUMNS "
    "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = ? "
    "ORDER BY ORDINAL_POSITION"
)


class MysqlAdapter(BaseAdapter):
    """Asynchronous MySQL adapter."""

    dialect_name = DatabaseDialect.MYSQL

    _tables_query = (
        "SELECT TABLE_NAME FROM information_schema.TABLES "
        "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_TYPE = 'BASE TABLE' "
        "ORDER BY TABLE_NAME"
    )

    async def _open(self, options: dict[str, Any]) -> Any:
        import aiomysql

        kwargs: dict[str, Any] = {
            "host": self.config.host or "localhost",
            "port": self.config.port or 3306,
            "user": self.config.username,
            "password": self.config.password or "",
            "db": self.config.database,
            "autocommit": True,
        }
        if options.get("charset"):
            kwargs["charset"] = options["charset"]
        if options.get("timeout"):
            kwargs["connect_timeout"] = options["timeout"]
        return await aiomysql.connect(**kwargs)

    async def _close(self, connection: Any) -> None:
        connection.close()

    async def _run(self, connection: Any, sql: str, params: tuple[Any, ...]) -> QueryResult:
        async with connection.cursor() as cursor:
            await cursor.execute(sql, params or None)
            rows = await fetch_rows(cursor)
            if cursor.description is not None:
                return QueryResult(rows=rows, row_count=len(rows))
            return QueryResult(
                rows=[],
                row_count=0,
                affected_rows=cursor.rowcount,
                insert_id=cursor.lastrowid or None,
            )

    async def get_table_schema(self, table_name: str) -> TableSchema:
        result = await self.execute(_COLUMNS_QUERY, [table_name])
        if not result.rows:
            raise self._table_not_found(table_name)

        columns = tuple(
            ColumnInfo(
                name=row["COLUMN_NAME"],
                data_type=row["DATA_TYPE"],
                nullable=row["IS_NULLABLE"] == "YES",
                primary_key=row["COLUMN_KEY"] == "PRI",
                default=row["COLUMN_DEFAULT"],
                max_length=row["CHARACTER_MAXIMUM_LENGTH"],
            )
            for row in result.rows
        )
        return TableSchema(name=table_name, columns=columns)
