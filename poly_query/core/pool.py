"""Bounded, health-checked connection pools keyed by connection target.

ConnectionPoolManager owns one pool per fingerprint (see
``poly_query.core.config.fingerprint``). Each pool holds at most
``max_pool_size`` adapters. ``acquire`` hands out an idle healthy adapter,
opens a new one while capacity remains, or waits for a release.

All state lives on a single event loop. Pool state is re-read after every
suspension point: an idle entry is claimed before its health check runs and
a creation slot is reserved before ``connect()`` runs, so concurrent
acquirers never share an adapter or exceed capacity.

Usage::

    async with ConnectionPoolManager() as pools:
        async with pools.connection(config) as adapter:
            result = await adapter.execute("SELECT 1")
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from typing import Any

import structlog

from poly_query.adapters.factory import create_adapter
from poly_query.adapters.protocol import DatabaseAdapter
from poly_query.core.config import DatabaseConfig, PoolSettings, fingerprint
from poly_query.core.exceptions import (
    ConnectionError,
    PolyQueryError,
    PoolClosedError,
    PoolTimeoutError,
)

logger = structlog.get_logger(__name__)

AdapterFactory = Callable[[DatabaseConfig], DatabaseAdapter]


@dataclass
class PooledConnection:
    """One adapter owned by a pool."""

    adapter: DatabaseAdapter
    last_used: float = field(default_factory=time.monotonic)
    in_use: bool = False
    use_count: int = 0


@dataclass(frozen=True)
class PoolDetail:
    key: str
    total: int
    active: int
    idle: int


@dataclass(frozen=True)
class PoolStatistics:
    total_pools: int
    total_connections: int
    active_connections: int
    idle_connections: int
    pools: tuple[PoolDetail, ...] = ()


def _target_context(config: DatabaseConfig) -> dict[str, Any]:
    return {
        "host": config.host,
        "port": config.port,
        "database": config.target,
    }


class ConnectionPoolManager:
    """Registry of per-target connection pools."""

    def __init__(
        self,
        adapter_factory: AdapterFactory | None = None,
        settings: PoolSettings | None = None,
    ) -> None:
        self._adapter_factory = adapter_factory or create_adapter
        self.settings = settings or PoolSettings()
        self._pools: dict[str, list[PooledConnection]] = {}
        self._pending: dict[str, int] = {}
        self._waiters: dict[str, deque[asyncio.Future[None]]] = {}
        self._sweep_task: asyncio.Task[None] | None = None
        self._drained = asyncio.Event()
        self._drained.set()
        self._closed = False

    async def __aenter__(self) -> ConnectionPoolManager:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    @property
    def closed(self) -> bool:
        return self._closed

    # --- acquire / release ---

    async def acquire(self, config: DatabaseConfig) -> DatabaseAdapter:
        """Return a connected adapter for *config*; the caller must ``release`` it.

        Raises:
            PoolClosedError: If the manager has been shut down.
            ConnectionError: ``POOL_CONNECTION_FAILED`` if a new connection
                cannot be opened.
            PoolTimeoutError: If the pool stays at capacity for
                ``acquire_timeout`` seconds.
        """
        self._check_open()
        key = fingerprint(config)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.acquire_timeout

        while True:
            adapter = await self._reuse_idle(key)
            if adapter is not None:
                return adapter

            if self._has_capacity(key):
                return await self._create(key, config)

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning("pool.acquire_timeout", key=key, timeout=self.settings.acquire_timeout)
                raise PoolTimeoutError(
                    self.settings.acquire_timeout,
                    context={"key": key, "max_pool_size": self.settings.max_pool_size},
                )
            await self._wait(key, min(remaining, self.settings.poll_interval))
            self._check_open()

    def release(self, config: DatabaseConfig, adapter: DatabaseAdapter) -> None:
        """Return *adapter* to its pool and wake one waiter."""
        key = fingerprint(config)
        entry = self._find(key, adapter)
        if entry is None:
            logger.warning("pool.release_unknown", key=key)
            return
        if not entry.in_use:
            logger.debug("pool.release_idle", key=key)
            return

        entry.in_use = False
        entry.last_used = time.monotonic()
        self._update_drained()
        self._notify(key)
        logger.debug("pool.connection_released", key=key, use_count=entry.use_count)

    @asynccontextmanager
    async def connection(self, config: DatabaseConfig) -> AsyncIterator[DatabaseAdapter]:
        """Acquire an adapter for the duration of the block."""
        adapter = await self.acquire(config)
        try:
            yield adapter
        finally:
            self.release(config, adapter)

    async def _reuse_idle(self, key: str) -> DatabaseAdapter | None:
        while True:
            entry = self._claim_idle(key)
            if entry is None:
                return None

            try:
                healthy = await self._probe(key, entry)
            except asyncio.CancelledError:
                self._unclaim(key, entry)
                raise

            # shutdown() may have run during the probe.
            tracked = self._find(key, entry.adapter) is entry
            if self._closed:
                if tracked:
                    self._unclaim(key, entry)
                raise PoolClosedError("Connection pool manager is shut down")
            if not tracked:
                continue

            if healthy:
                entry.use_count += 1
                entry.last_used = time.monotonic()
                logger.debug("pool.connection_reused", key=key, use_count=entry.use_count)
                return entry.adapter

            self._remove(key, entry)
            await self._disconnect_quietly(key, entry.adapter)

    async def _probe(self, key: str, entry: PooledConnection) -> bool:
        try:
            status = await entry.adapter.health_check()
        except Exception as e:
            logger.warning("pool.health_check_failed", key=key, error=str(e))
            return False
        if not status.healthy:
            logger.debug("pool.connection_unhealthy", key=key, status=status.status)
        return status.healthy

    async def _create(self, key: str, config: DatabaseConfig) -> DatabaseAdapter:
        adapter = self._adapter_factory(config)
        self._pending[key] = self._pending.get(key, 0) + 1
        try:
            await adapter.connect()
        except asyncio.CancelledError:
            self._unreserve(key, notify=True)
            raise
        except Exception as e:
            self._unreserve(key, notify=True)
            logger.warning("pool.connection_failed", key=key, error=str(e))
            raise ConnectionError(
                f"Failed to create connection: {e}",
                code="POOL_CONNECTION_FAILED",
                context=_target_context(config),
            ) from e
        self._unreserve(key)

        if self._closed:
            await self._disconnect_quietly(key, adapter)
            raise PoolClosedError("Connection pool manager is shut down")

        entries = self._pools.setdefault(key, [])
        entries.append(PooledConnection(adapter=adapter, in_use=True, use_count=1))
        self._drained.clear()
        logger.debug("pool.connection_created", key=key, size=len(entries))
        return adapter

    async def _wait(self, key: str, timeout: float) -> None:
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        queue = self._waiters.setdefault(key, deque())
        queue.append(waiter)
        try:
            await asyncio.wait_for(waiter, timeout)
        except asyncio.TimeoutError:
            pass
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled() and waiter.exception() is None:
                self._notify(key)
            raise
        finally:
            queue = self._waiters.get(key)
            if queue is not None:
                with suppress(ValueError):
                    queue.remove(waiter)
                if not queue:
                    del self._waiters[key]

    # --- bookkeeping (synchronous) ---

    def _check_open(self) -> None:
        if self._closed:
            raise PoolClosedError("Connection pool manager is shut down")

    def _has_capacity(self, key: str) -> bool:
        size = len(self._pools.get(key, ())) + self._pending.get(key, 0)
        return size < self.settings.max_pool_size

    def _claim_idle(self, key: str) -> PooledConnection | None:
        for entry in self._pools.get(key, ()):
            if not entry.in_use:
                entry.in_use = True
                self._drained.clear()
                return entry
        return None

    def _unclaim(self, key: str, entry: PooledConnection) -> None:
        entry.in_use = False
        self._update_drained()
        self._notify(key)

    def _unreserve(self, key: str, *, notify: bool = False) -> None:
        remaining = self._pending.get(key, 0) - 1
        if remaining > 0:
            self._pending[key] = remaining
        else:
            self._pending.pop(key, None)
        if notify:
            self._notify(key)

    def _find(self, key: str, adapter: DatabaseAdapter) -> PooledConnection | None:
        for entry in self._pools.get(key, ()):
            if entry.adapter is adapter:
                return entry
        return None

    def _remove(self, key: str, entry: PooledConnection) -> None:
        entries = self._pools.get(key)
        if entries is None:
            return
        with suppress(ValueError):
            entries.remove(entry)
        if not entries:
            del self._pools[key]
        self._update_drained()
        self._notify(key)

    def _notify(self, key: str) -> None:
        queue = self._waiters.get(key)
        while queue:
            waiter = queue.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return

    def _active_count(self) -> int:
        return sum(entry.in_use for entries in self._pools.values() for entry in entries)

    def _update_drained(self) -> None:
        if self._active_count() == 0:
            self._drained.set()
        else:
            self._drained.clear()

    def _fail_waiters(self) -> None:
        waiters, self._waiters = self._waiters, {}
        for queue in waiters.values():
            for waiter in queue:
                if not waiter.done():
                    waiter.set_exception(PoolClosedError("Connection pool manager is shut down"))

    async def _disconnect_quietly(self, key: str, adapter: DatabaseAdapter) -> None:
        try:
            await adapter.disconnect()
        except Exception as e:
            logger.warning("pool.disconnect_failed", key=key, error=str(e))

    # --- eviction / lifecycle ---

    async def evict_idle(self) -> int:
        """Close idle connections unused for longer than ``max_idle_time``.

        Returns the number of connections evicted.
        """
        now = time.monotonic()
        max_idle = self.settings.max_idle_time
        expired = self._detach_idle(lambda entry: now - entry.last_used > max_idle)
        for key, entry in expired:
            await self._disconnect_quietly(key, entry.adapter)
            logger.debug("pool.connection_evicted", key=key, idle_for=now - entry.last_used)
        return len(expired)

    async def close_idle(self) -> int:
        """Close every idle connection now, regardless of age.

        Connections in use are left alone. Returns the number closed.
        """
        idle = self._detach_idle(lambda entry: True)
        for key, entry in idle:
            await self._disconnect_quietly(key, entry.adapter)
        logger.info("pool.idle_closed", closed=len(idle))
        return len(idle)

    def _detach_idle(
        self, predicate: Callable[[PooledConnection], bool]
    ) -> list[tuple[str, PooledConnection]]:
        detached: list[tuple[str, PooledConnection]] = []
        for key, entries in list(self._pools.items()):
            keep: list[PooledConnection] = []
            for entry in entries:
                if not entry.in_use and predicate(entry):
                    detached.append((key, entry))
                else:
                    keep.append(entry)
            entries[:] = keep
            if not entries:
                del self._pools[key]
        return detached

    async def _sweep(self) -> None:
        while True:
            await asyncio.sleep(self.settings.cleanup_interval)
            try:
                await self.evict_idle()
            except Exception:
                logger.exception("pool.sweep_failed")

    def start(self) -> None:
        """Start the background idle-eviction sweep. Requires a running loop."""
        self._check_open()
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.get_running_loop().create_task(self._sweep())

    async def shutdown(self, timeout: float | None = None) -> None:
        """Close every pool.

        Waits up to *timeout* seconds (default ``shutdown_timeout``) for active
        connections to be released, then disconnects everything. Calling it
        again is a no-op.
        """
        if self._closed:
            return
        self._closed = True

        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None

        self._fail_waiters()

        timeout = self.settings.shutdown_timeout if timeout is None else timeout
        active = self._active_count()
        if active:
            logger.info("pool.shutdown_waiting", active=active, timeout=timeout)
            try:
                await asyncio.wait_for(self._drained.wait(), timeout)
            except asyncio.TimeoutError:
                logger.warning("pool.shutdown_forced", active=self._active_count())

        entries = [(key, entry) for key, pool in self._pools.items() for entry in pool]
        self._pools.clear()
        for key, entry in entries:
            await self._disconnect_quietly(key, entry.adapter)

        self._fail_waiters()
        self._drained.set()
        logger.info("pool.shutdown_complete", closed=len(entries))

    # --- connectivity checks ---

    async def test_connection(self, config: DatabaseConfig) -> bool:
        """Check *config*'s target through the pool.

        Returns the adapter's liveness probe result; the adapter is always
        released.

        Raises:
            ConnectionError: ``CONNECTION_TEST_FAILED`` if no connection
                could be obtained or the probe itself failed.
            PoolClosedError: If the manager has been shut down.
        """
        try:
            async with self.connection(config) as adapter:
                return await adapter.test_connection()
        except PoolClosedError:
            raise
        except PolyQueryError as e:
            logger.warning("pool.connection_test_failed", key=fingerprint(config), error=str(e))
            raise ConnectionError(
                f"Connection test failed: {e.message}",
                code="CONNECTION_TEST_FAILED",
                context={"dialect": config.dialect.value, **_target_context(config)},
            ) from e

    async def test_connections(self, configs: Iterable[DatabaseConfig]) -> dict[str, bool]:
        """Check several targets concurrently, keyed by fingerprint.

        A target that cannot be reached maps to ``False``.
        """
        configs = list(configs)

        async def check(config: DatabaseConfig) -> bool:
            try:
                return await self.test_connection(config)
            except ConnectionError:
                return False

        results = await asyncio.gather(*(check(config) for config in configs))
        return {fingerprint(config): ok for config, ok in zip(configs, results)}

    # --- introspection ---

    def statistics(self) -> PoolStatistics:
        details = tuple(
            PoolDetail(
                key=key,
                total=len(entries),
                active=sum(entry.in_use for entry in entries),
                idle=sum(not entry.in_use for entry in entries),
            )
            for key, entries in self._pools.items()
        )
        return PoolStatistics(
            total_pools=len(details),
            total_connections=sum(d.total for d in details),
            active_connections=sum(d.active for d in details),
            idle_connections=sum(d.idle for d in details),
            pools=details,
        )
