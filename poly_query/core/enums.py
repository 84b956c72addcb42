"""Enumerations shared across the builder, adapters and pool."""

from __future__ import annotations

from enum import Enum


class DatabaseDialect(str, Enum):
    """Supported SQL dialects."""

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    MSSQL = "mssql"
    ORACLE = "oracle"
    SQLITE = "sqlite"


class QueryOperator(str, Enum):
    """Operators accepted in WHERE and HAVING conditions."""

    EQ = "="
    NE = "!="
    NE_ANSI = "<>"
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    ILIKE = "ILIKE"
    NOT_ILIKE = "NOT ILIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"
    EXISTS = "EXISTS"
    NOT_EXISTS = "NOT EXISTS"
    BETWEEN = "BETWEEN"
    NOT_BETWEEN = "NOT BETWEEN"
    REGEXP = "REGEXP"
    NOT_REGEXP = "NOT REGEXP"


class JoinType(str, Enum):
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL = "FULL"
    CROSS = "CROSS"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class PaginationStyle(str, Enum):
    """Shape of the pagination clause a dialect renders."""

    LIMIT_OFFSET = "limit_offset"
    OFFSET_FETCH = "offset_fetch"


class ErrorCategory(str, Enum):
    CONNECTION = "CONNECTION"
    QUERY = "QUERY"
    VALIDATION = "VALIDATION"
    TIMEOUT = "TIMEOUT"
    RESOURCE = "RESOURCE"
    CONFIGURATION = "CONFIGURATION"


class ErrorSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"
