"""poly_query - dialect-aware SQL builder and async connection pooling."""

from __future__ import annotations

from poly_query.adapters.factory import create_adapter, register_adapter
from poly_query.adapters.protocol import DatabaseAdapter, HealthStatus, QueryResult
from poly_query.core.config import DatabaseConfig, PoolSettings, fingerprint
from poly_query.core.enums import (
    DatabaseDialect,
    JoinType,
    PaginationStyle,
    QueryOperator,
    SortDirection,
)
from poly_query.core.exceptions import (
    AdapterError,
    ConfigurationError,
    ConnectionError,  # noqa: A004
    ExecutionError,
    PolyQueryError,
    PoolClosedError,
    PoolError,
    PoolTimeoutError,
    QueryBuildError,
)
from poly_query.core.logging import configure_logging
from poly_query.core.pool import ConnectionPoolManager, PoolStatistics
from poly_query.query.builder import (
    QueryBuilder,
    build_delete,
    build_insert,
    build_update,
    escape_identifier,
)
from poly_query.query.executor import QueryExecutor
from poly_query.query.types import QueryBuildResult

__all__ = [
    # Configuration
    "DatabaseConfig",
    "PoolSettings",
    "fingerprint",
    "configure_logging",
    # Builder
    "QueryBuilder",
    "QueryBuildResult",
    "escape_identifier",
    "build_insert",
    "build_update",
    "build_delete",
    # Pool / execution
    "ConnectionPoolManager",
    "PoolStatistics",
    "QueryExecutor",
    # Adapters
    "DatabaseAdapter",
    "QueryResult",
    "HealthStatus",
    "create_adapter",
    "register_adapter",
    # Enums
    "DatabaseDialect",
    "QueryOperator",
    "JoinType",
    "SortDirection",
    "PaginationStyle",
    # Exceptions
    "PolyQueryError",
    "QueryBuildError",
    "ExecutionError",
    "ConfigurationError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
    "PoolTimeoutError",
    "PoolClosedError",
]
