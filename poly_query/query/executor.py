"""CRUD and pagination on top of the pool and the builder.

Every call acquires a pooled adapter for the executor's config and releases
it when the statement finishes, whether or not it succeeded.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from poly_query.adapters.protocol import QueryResult
from poly_query.core.config import DatabaseConfig
from poly_query.core.enums import PaginationStyle
from poly_query.core.pool import ConnectionPoolManager
from poly_query.query.builder import QueryBuilder, build_delete, build_insert, build_update
from poly_query.query.pagination import (
    PaginationResult,
    add_pagination_to_query,
    calculate_offset,
    create_pagination_result,
    validate_pagination_options,
)
from poly_query.query.types import QueryBuildResult, QueryParameter

logger = structlog.get_logger(__name__)


class QueryExecutor:
    """Executes built statements against one database target."""

    def __init__(self, config: DatabaseConfig, pool: ConnectionPoolManager) -> None:
        self.config = config
        self.pool = pool

    def builder(self) -> QueryBuilder:
        """New QueryBuilder for this executor's dialect."""
        return QueryBuilder(self.config.dialect)

    async def execute_query(
        self,
        query: str,
        params: Sequence[QueryParameter] | None = None,
        options: dict[str, Any] | None = None,
    ) -> QueryResult:
        async with self.pool.connection(self.config) as adapter:
            return await adapter.execute(query, params, options)

    async def execute_built(self, built: QueryBuildResult) -> QueryResult:
        if built.warnings:
            for warning in built.warnings:
                logger.warning("executor.query_warning", warning=warning, query=built.query)
        return await self.execute_query(built.query, built.params)

    async def create(self, table: str, data: Mapping[str, QueryParameter]) -> QueryResult:
        return await self.execute_built(build_insert(table, data, self.config.dialect))

    async def read(
        self,
        table: str,
        criteria: Mapping[str, QueryParameter] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> QueryResult:
        builder = self._filtered(table, criteria)
        if limit is not None:
            builder.limit(limit)
        if offset is not None:
            builder.offset(offset)
        return await self.execute_built(builder.build())

    async def update(
        self,
        table: str,
        data: Mapping[str, QueryParameter],
        criteria: Mapping[str, QueryParameter],
    ) -> QueryResult:
        return await self.execute_built(build_update(table, data, criteria, self.config.dialect))

    async def delete(self, table: str, criteria: Mapping[str, QueryParameter]) -> QueryResult:
        return await self.execute_built(build_delete(table, criteria, self.config.dialect))

    async def paginate(
        self,
        table: str,
        page: int,
        page_size: int,
        criteria: Mapping[str, QueryParameter] | None = None,
        order_by: str | None = None,
    ) -> PaginationResult:
        """Fetch one page of *table* rows matching *criteria*.

        Runs a COUNT query and a page query. Without *order_by*, dialects
        using OFFSET/FETCH order the page by the first column.
        """
        options = validate_pagination_options(page, page_size)
        logger.debug(
            "executor.paginate",
            table=table,
            page=options.page,
            page_size=options.page_size,
        )

        count_query = self._filtered(table, criteria).select("COUNT(*) AS total").build()
        count_result = await self.execute_built(count_query)
        total = 0
        if count_result.rows:
            total = int(next(iter(count_result.rows[0].values())) or 0)

        page_query = self._filtered(table, criteria)
        if order_by:
            page_query.order_by(order_by)
        if order_by or page_query.profile.pagination is not PaginationStyle.OFFSET_FETCH:
            page_query.limit(options.page_size).offset(
                calculate_offset(options.page, options.page_size)
            )
            built = page_query.build()
        else:
            # OFFSET/FETCH is rejected without ORDER BY.
            unpaged = page_query.build()
            built = QueryBuildResult(
                query=add_pagination_to_query(
                    unpaged.query, page_query.profile, options.page, options.page_size
                ),
                params=unpaged.params,
                warnings=unpaged.warnings,
            )
        data_result = await self.execute_built(built)

        return create_pagination_result(data_result.rows, total, options.page, options.page_size)

    def _filtered(
        self, table: str, criteria: Mapping[str, QueryParameter] | None
    ) -> QueryBuilder:
        builder = self.builder().select("*").from_(table)
        for column, value in (criteria or {}).items():
            builder.where(column, "=", value)
        return builder
