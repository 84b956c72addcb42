"""Integration test for the SQLite workflow.

Covers: pool acquisition, builder-rendered CRUD through QueryExecutor,
pagination and shutdown against a real SQLite database file.
"""

from __future__ import annotations

import pytest

from poly_query.core.config import DatabaseConfig, PoolSettings
from poly_query.core.pool import ConnectionPoolManager
from poly_query.query.builder import QueryBuilder
from poly_query.query.executor import QueryExecutor


@pytest.fixture
async def pools():  # type: ignore[no-untyped-def]
    settings = PoolSettings(max_pool_size=3, acquire_timeout=2.0, poll_interval=0.01)
    async with ConnectionPoolManager(settings=settings) as manager:
        yield manager


@pytest.fixture
async def executor(pools: ConnectionPoolManager, sqlite_config: DatabaseConfig) -> QueryExecutor:
    executor = QueryExecutor(sqlite_config, pools)
    await executor.execute_query(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, "
        "age INTEGER, active INTEGER NOT NULL DEFAULT 1)"
    )
    for name, age in [("Alice", 31), ("Bob", 25), ("Carol", 42), ("Dave", 19), ("Eve", 37)]:
        await executor.create("users", {"name": name, "age": age})
    return executor


class TestSqliteWorkflow:
    async def test_create_returns_insert_id(self, executor: QueryExecutor) -> None:
        result = await executor.create("users", {"name": "Frank", "age": 50})
        assert result.insert_id == 6

    async def test_read_by_criteria(self, executor: QueryExecutor) -> None:
        result = await executor.read("users", {"name": "Carol"})
        assert len(result.rows) == 1
        assert result.rows[0]["age"] == 42

    async def test_builder_query(self, executor: QueryExecutor) -> None:
        built = (
            executor.builder()
            .select(["name", "age"])
            .from_("users")
            .where("age", "BETWEEN", [20, 40])
            .where_not_null("name")
            .order_by("age", "desc")
            .limit(2)
            .for_update()
            .build()
        )
        result = await executor.execute_built(built)
        assert [row["name"] for row in result.rows] == ["Eve", "Alice"]

    async def test_in_condition(self, executor: QueryExecutor) -> None:
        built = QueryBuilder("sqlite").from_("users").where_in("name", ["Bob", "Dave"]).build()
        result = await executor.execute_built(built)
        assert sorted(row["name"] for row in result.rows) == ["Bob", "Dave"]

    async def test_update_and_delete(self, executor: QueryExecutor) -> None:
        updated = await executor.update("users", {"active": 0}, {"name": "Bob"})
        assert updated.affected_rows == 1

        deleted = await executor.delete("users", {"active": 0})
        assert deleted.affected_rows == 1

        remaining = await executor.read("users")
        assert len(remaining.rows) == 4

    async def test_paginate(self, executor: QueryExecutor) -> None:
        page = await executor.paginate("users", 2, 2, order_by="id")
        assert [row["name"] for row in page.data] == ["Carol", "Dave"]
        assert page.pagination.total == 5
        assert page.pagination.total_pages == 3
        assert page.pagination.has_next is True

    async def test_connections_are_reused(
        self, executor: QueryExecutor, pools: ConnectionPoolManager
    ) -> None:
        await executor.read("users")
        stats = pools.statistics()
        assert stats.total_connections == 1
        assert stats.active_connections == 0

    async def test_shutdown_closes_connections(
        self, executor: QueryExecutor, pools: ConnectionPoolManager, sqlite_config: DatabaseConfig
    ) -> None:
        adapter = await pools.acquire(sqlite_config)
        pools.release(sqlite_config, adapter)
        await pools.shutdown()
        assert pools.statistics().total_connections == 0
        assert (await adapter.health_check()).healthy is False
