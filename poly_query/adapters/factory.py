"""Adapter lookup by dialect.

Adapter modules are imported on first use so that only the driver for the
dialect actually in use has to be installed.
"""

from __future__ import annotations

import importlib
from typing import Any

from poly_query.adapters.protocol import DatabaseAdapter
from poly_query.core.config import DatabaseConfig
from poly_query.core.enums import DatabaseDialect
from poly_query.core.exceptions import AdapterError

_ADAPTER_MAP: dict[DatabaseDialect, tuple[str, str]] = {
    DatabaseDialect.SQLITE: ("poly_query.adapters.sqlite", "SqliteAdapter"),
    DatabaseDialect.POSTGRESQL: ("poly_query.adapters.postgresql", "PostgresqlAdapter"),
    DatabaseDialect.MYSQL: ("poly_query.adapters.mysql", "MysqlAdapter"),
    DatabaseDialect.ORACLE: ("poly_query.adapters.oracle", "OracleAdapter"),
    DatabaseDialect.MSSQL: ("poly_query.adapters.mssql", "MssqlAdapter"),
}

_REGISTERED: dict[DatabaseDialect, type[Any]] = {}


def _resolve_dialect(dialect: DatabaseDialect | str) -> DatabaseDialect:
    try:
        return DatabaseDialect(str(getattr(dialect, "value", dialect)).lower())
    except ValueError:
        raise AdapterError(
            f"Unsupported database dialect: {dialect}",
            code="UNSUPPORTED_DIALECT",
            context={"dialect": str(dialect)},
        ) from None


def register_adapter(dialect: DatabaseDialect | str, adapter_cls: type[Any]) -> None:
    """Use *adapter_cls* instead of the bundled adapter for *dialect*."""
    _REGISTERED[_resolve_dialect(dialect)] = adapter_cls


def unregister_adapter(dialect: DatabaseDialect | str) -> None:
    _REGISTERED.pop(_resolve_dialect(dialect), None)


def _load_adapter_class(dialect: DatabaseDialect) -> type[Any]:
    if dialect in _REGISTERED:
        return _REGISTERED[dialect]

    module_path, cls_name = _ADAPTER_MAP[dialect]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)
    except (ImportError, AttributeError) as e:
        raise AdapterError(
            f"Failed to load adapter for '{dialect.value}': {e}",
            code="ADAPTER_LOAD_FAILED",
            context={"dialect": dialect.value},
        ) from e


def create_adapter(config: DatabaseConfig) -> DatabaseAdapter:
    """Instantiate an unconnected adapter for *config*'s dialect.

    Raises:
        AdapterError: If the dialect is unknown or its adapter cannot be loaded.
    """
    adapter_cls = _load_adapter_class(_resolve_dialect(config.dialect))
    return adapter_cls(config)
