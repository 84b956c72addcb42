"""Shared adapter behaviour.

Concrete adapters only open/close a driver connection, run one statement,
and describe a table. BaseAdapter layers on placeholder translation, error
wrapping, activity tracking and the health check.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, ClassVar

import structlog

from poly_query.adapters.protocol import HealthStatus, QueryResult, TableSchema
from poly_query.core.config import DatabaseConfig, fingerprint
from poly_query.core.enums import DatabaseDialect
from poly_query.core.exceptions import ConnectionError, ExecutionError, PolyQueryError
from poly_query.core.params import to_driver_params
from poly_query.query.dialects import DialectProfile, get_profile

logger = structlog.get_logger(__name__)


async def fetch_rows(cursor: Any, *, lower_keys: bool = False) -> list[dict[str, Any]]:
    """Drain an async DB-API cursor into a list of dicts.

    Handles both tuple-like rows and dict-like rows from different drivers.
    """
    if cursor.description is None:
        return []
    columns = [desc[0].lower() if lower_keys else desc[0] for desc in cursor.description]
    rows = await cursor.fetchall()
    if not rows:
        return []

    if isinstance(rows[0], dict):
        return [dict(row) for row in rows]
    return [dict(zip(columns, row, strict=True)) for row in rows]


class BaseAdapter(ABC):
    """Base class for the bundled driver adapters."""

    dialect_name: ClassVar[DatabaseDialect]

    def __init__(self, config: DatabaseConfig) -> None:
        self.config = config
        self._connection: Any = None
        self.last_activity = datetime.now(timezone.utc)

    @property
    def dialect(self) -> DatabaseDialect:
        return self.dialect_name

    @property
    def profile(self) -> DialectProfile:
        return get_profile(self.dialect_name)

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {fingerprint(self.config)} connected={self.is_connected}>"

    # --- driver hooks ---

    @abstractmethod
    async def _open(self, options: dict[str, Any]) -> Any:
        """Open and return a driver connection."""

    @abstractmethod
    async def _close(self, connection: Any) -> None:
        """Close a driver connection."""

    @abstractmethod
    async def _run(self, connection: Any, sql: str, params: tuple[Any, ...]) -> QueryResult:
        """Execute already-translated SQL on *connection*."""

    @abstractmethod
    async def get_table_schema(self, table_name: str) -> TableSchema: ...

    _tables_query: ClassVar[str]

    # --- public API ---

    def _context(self) -> dict[str, Any]:
        return {
            "dialect": self.dialect.value,
            "host": self.config.host,
            "port": self.config.port,
            "database": self.config.target,
        }

    async def connect(self, options: dict[str, Any] | None = None) -> None:
        if self._connection is not None:
            return
        merged = {**self.config.options, **(options or {})}
        timeout = merged.get("timeout")
        prefix = self.dialect.value.upper()
        try:
            opening = self._open(merged)
            if timeout:
                self._connection = await asyncio.wait_for(opening, timeout)
            else:
                self._connection = await opening
        except PolyQueryError:
            raise
        except Exception as e:
            raise ConnectionError(
                f"{self.dialect.value} connection failed: {e}",
                code=f"{prefix}_CONNECTION_FAILED",
                context=self._context(),
            ) from e
        self._touch()
        logger.debug("adapter.connected", target=fingerprint(self.config))

    async def disconnect(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            await self._close(connection)
        except Exception as e:
            raise ConnectionError(
                f"{self.dialect.value} disconnect failed: {e}",
                code=f"{self.dialect.value.upper()}_DISCONNECT_FAILED",
                context=self._context(),
            ) from e
        logger.debug("adapter.disconnected", target=fingerprint(self.config))

    async def test_connection(self) -> bool:
        if self._connection is None:
            return False
        try:
            await self.execute(self.profile.probe_query)
        except ExecutionError as e:
            logger.debug("adapter.probe_failed", target=fingerprint(self.config), error=str(e))
            return False
        return True

    async def health_check(self) -> HealthStatus:
        ok = await self.test_connection()
        return HealthStatus(
            status="healthy" if ok else "unhealthy",
            details={
                "connected": self.is_connected,
                "last_activity": self.last_activity.isoformat(),
                "connection_test": ok,
            },
        )

    async def execute(
        self,
        query: str,
        params: Sequence[Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> QueryResult:
        if self._connection is None:
            raise ExecutionError(
                "Adapter is not connected",
                code="NOT_CONNECTED",
                context={**self._context(), "query": query},
            )

        sql, values = to_driver_params(query, params, self.dialect)
        try:
            result = await self._run(self._connection, sql, values)
        except PolyQueryError:
            raise
        except Exception as e:
            raise ExecutionError(
                f"Query execution failed: {e}",
                code="QUERY_EXECUTION_FAILED",
                context={**self._context(), "query": query, "params": list(params or ())},
            ) from e
        self._touch()

        max_rows = (options or {}).get("max_rows")
        if max_rows is not None and len(result.rows) > max_rows:
            rows = result.rows[:max_rows]
            result = QueryResult(
                rows=rows,
                row_count=len(rows),
                affected_rows=result.affected_rows,
                insert_id=result.insert_id,
            )
        return result

    async def get_tables(self) -> list[str]:
        result = await self.execute(self._tables_query)
        return [str(next(iter(row.values()))) for row in result.rows]

    def _touch(self) -> None:
        self.last_activity = datetime.now(timezone.utc)

    def _table_not_found(self, table_name: str) -> ExecutionError:
        return ExecutionError(
            f"Table {table_name!r} not found",
            code="TABLE_NOT_FOUND",
            context={**self._context(), "table": table_name},
        )
