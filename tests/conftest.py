"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Sequence
from pathlib import Path
from typing import Any

import pytest

from poly_query.adapters.protocol import HealthStatus, QueryResult, TableSchema
from poly_query.core.config import DatabaseConfig, PoolSettings
from poly_query.core.enums import DatabaseDialect
from poly_query.core.pool import ConnectionPoolManager


class FakeAdapter:
    """In-memory DatabaseAdapter double with switchable failure modes."""

    def __init__(
        self,
        config: DatabaseConfig,
        *,
        fail_connect: bool = False,
        connect_gate: asyncio.Event | None = None,
    ) -> None:
        self.config = config
        self.fail_connect = fail_connect
        self.connect_gate = connect_gate
        self.connected = False
        self.healthy = True
        self.fail_disconnect = False
        self.disconnect_calls = 0
        self.executed: list[tuple[str, tuple[Any, ...]]] = []
        self.results: deque[QueryResult] = deque()
        self.execute_error: Exception | None = None
        self.health_gate: asyncio.Event | None = None

    @property
    def dialect(self) -> DatabaseDialect:
        return self.config.dialect

    async def connect(self, options: dict[str, Any] | None = None) -> None:
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        if self.fail_connect:
            raise OSError("connection refused")
        self.connected = True

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False
        if self.fail_disconnect:
            raise OSError("socket already closed")

    async def test_connection(self) -> bool:
        await asyncio.sleep(0)
        if self.health_gate is not None:
            await self.health_gate.wait()
        return self.connected and self.healthy

    async def health_check(self) -> HealthStatus:
        ok = await self.test_connection()
        return HealthStatus(status="healthy" if ok else "unhealthy")

    async def execute(
        self,
        query: str,
        params: Sequence[Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> QueryResult:
        self.executed.append((query, tuple(params or ())))
        if self.execute_error is not None:
            raise self.execute_error
        if self.results:
            return self.results.popleft()
        return QueryResult()

    async def get_tables(self) -> list[str]:
        return []

    async def get_table_schema(self, table_name: str) -> TableSchema:
        return TableSchema(name=table_name)


class FakeAdapterFactory:
    """Adapter factory recording every adapter it creates."""

    def __init__(self) -> None:
        self.created: list[FakeAdapter] = []
        self.fail_connect = False
        self.healthy = True
        self.connect_gate: asyncio.Event | None = None

    def __call__(self, config: DatabaseConfig) -> FakeAdapter:
        adapter = FakeAdapter(
            config, fail_connect=self.fail_connect, connect_gate=self.connect_gate
        )
        adapter.healthy = self.healthy
        self.created.append(adapter)
        return adapter


@pytest.fixture
def db_config() -> DatabaseConfig:
    return DatabaseConfig(
        dialect="postgresql",
        host="db.local",
        port=5432,
        database="app",
        username="svc",
        password="secret",
    )


@pytest.fixture
def sqlite_config(tmp_path: Path) -> DatabaseConfig:
    """SQLite file-backed config, so pooled connections share one database."""
    return DatabaseConfig(dialect="sqlite", database="app", filename=str(tmp_path / "app.db"))


@pytest.fixture
def pool_settings() -> PoolSettings:
    return PoolSettings(
        max_pool_size=2,
        max_idle_time=60,
        cleanup_interval=60,
        acquire_timeout=1.0,
        poll_interval=0.01,
        shutdown_timeout=0.2,
    )


@pytest.fixture
def fake_factory() -> FakeAdapterFactory:
    return FakeAdapterFactory()


@pytest.fixture
async def pool(
    fake_factory: FakeAdapterFactory, pool_settings: PoolSettings
) -> AsyncIterator[ConnectionPoolManager]:
    manager = ConnectionPoolManager(adapter_factory=fake_factory, settings=pool_settings)
    yield manager
    await manager.shutdown(timeout=0.01)
