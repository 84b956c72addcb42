"""Database adapters - one async adapter per supported dialect."""

from __future__ import annotations

from poly_query.adapters.factory import create_adapter, register_adapter, unregister_adapter
from poly_query.adapters.protocol import (
    ColumnInfo,
    DatabaseAdapter,
    HealthStatus,
    QueryResult,
    TableSchema,
)

__all__ = [
    "DatabaseAdapter",
    "QueryResult",
    "HealthStatus",
    "ColumnInfo",
    "TableSchema",
    "create_adapter",
    "register_adapter",
    "unregister_adapter",
]
