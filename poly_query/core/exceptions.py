"""poly_query exception hierarchy.

Every error carries a machine-readable ``code``, a ``category``, a
``severity``, a UTC ``timestamp`` and an optional ``context`` mapping
(host, database, query, params...). Raw driver exceptions are never exposed
to callers; adapters chain them with ``raise ... from``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from poly_query.core.enums import ErrorCategory, ErrorSeverity


class PolyQueryError(Exception):
    """Base exception for all poly_query errors."""

    default_code = "POLY_QUERY_ERROR"
    category = ErrorCategory.QUERY
    severity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.context: dict[str, Any] = dict(context or {})
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Serializable view of the error for structured logging."""
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "context": dict(self.context),
        }


# --- Query building ---


class QueryBuildError(PolyQueryError):
    """Raised when a statement cannot be rendered (missing FROM, bad arity...)."""

    default_code = "QUERY_BUILD_FAILED"
    category = ErrorCategory.QUERY
    severity = ErrorSeverity.HIGH


# --- Execution ---


class ExecutionError(PolyQueryError):
    """Raised when an adapter fails to execute a statement."""

    default_code = "QUERY_EXECUTION_FAILED"
    category = ErrorCategory.QUERY
    severity = ErrorSeverity.MEDIUM


# --- Configuration ---


class ConfigurationError(PolyQueryError):
    """Raised for invalid or incomplete configuration."""

    default_code = "INVALID_CONFIGURATION"
    category = ErrorCategory.CONFIGURATION
    severity = ErrorSeverity.HIGH


# --- Adapter / pool ---


class AdapterError(PolyQueryError):
    """Base for adapter errors."""

    default_code = "ADAPTER_ERROR"
    category = ErrorCategory.CONNECTION


class ConnectionError(AdapterError):  # noqa: A001
    """Raised when a connection cannot be opened or has failed."""

    default_code = "CONNECTION_FAILED"
    category = ErrorCategory.CONNECTION
    severity = ErrorSeverity.HIGH


class PoolError(AdapterError):
    """Raised on connection pool failures."""

    default_code = "POOL_ERROR"
    category = ErrorCategory.RESOURCE
    severity = ErrorSeverity.HIGH


class PoolTimeoutError(PoolError):
    """Raised when no pooled connection frees up before the acquire deadline."""

    default_code = "POOL_TIMEOUT"
    category = ErrorCategory.TIMEOUT

    def __init__(
        self,
        timeout: float,
        *,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.timeout = timeout
        super().__init__(
            f"Timeout waiting for available connection after {timeout:g}s",
            context=context,
        )


class PoolClosedError(PoolError):
    """Raised when acquiring from a pool manager that has been shut down."""

    default_code = "POOL_CLOSED"
