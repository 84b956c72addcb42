"""Database adapter protocol.

Every adapter module MUST implement DatabaseAdapter. The pool and executor
depend only on this interface, never on a concrete driver.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, runtime_checkable

from poly_query.core.enums import DatabaseDialect

HealthState = Literal["healthy", "degraded", "unhealthy"]


@dataclass(frozen=True)
class QueryResult:
    """Rows returned by a statement plus write metadata when available."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    row_count: int = 0
    affected_rows: int | None = None
    insert_id: int | str | None = None


@dataclass(frozen=True)
class HealthStatus:
    status: HealthState
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    data_type: str
    nullable: bool = True
    primary_key: bool = False
    default: Any = None
    max_length: int | None = None


@dataclass(frozen=True)
class TableSchema:
    name: str
    columns: tuple[ColumnInfo, ...] = ()


@runtime_checkable
class DatabaseAdapter(Protocol):
    """Asynchronous database adapter protocol."""

    @property
    def dialect(self) -> DatabaseDialect:
        """Dialect whose placeholder syntax ``execute`` accepts."""
        ...

    async def connect(self, options: dict[str, Any] | None = None) -> None:
        """Open the underlying connection."""
        ...

    async def disconnect(self) -> None:
        """Close the underlying connection. Safe to call when not connected."""
        ...

    async def test_connection(self) -> bool:
        """Return True if a trivial statement succeeds."""
        ...

    async def health_check(self) -> HealthStatus:
        """Cheap liveness probe. Never raises."""
        ...

    async def execute(
        self,
        query: str,
        params: Sequence[Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> QueryResult:
        """Execute *query* with ordered *params*."""
        ...

    async def get_tables(self) -> list[str]:
        """List user tables."""
        ...

    async def get_table_schema(self, table_name: str) -> TableSchema:
        """Describe the columns of *table_name*."""
        ...
