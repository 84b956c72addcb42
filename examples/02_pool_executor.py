"""
Example 02: Connection Pool and Executor

This example runs CRUD statements against SQLite through ConnectionPoolManager
and QueryExecutor, then prints the pool statistics.
"""

import asyncio
import tempfile
from pathlib import Path

from poly_query import (
    ConnectionPoolManager,
    DatabaseConfig,
    PoolSettings,
    QueryExecutor,
    configure_logging,
)


async def main():
    configure_logging("INFO")

    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    config = DatabaseConfig(dialect="sqlite", database="example", filename=db_path)
    settings = PoolSettings(max_pool_size=4, acquire_timeout=5)

    async with ConnectionPoolManager(settings=settings) as pools:
        executor = QueryExecutor(config, pools)

        await executor.execute_query("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                active INTEGER DEFAULT 1
            )
        """)

        print("=== Create ===\n")
        for name in ["Alice", "Bob", "Charlie"]:
            result = await executor.create("users", {"name": name, "email": f"{name.lower()}@example.com"})
            print(f"inserted {name} with id {result.insert_id}")
        print()

        print("=== Read / Update / Delete ===\n")
        result = await executor.update("users", {"active": 0}, {"name": "Charlie"})
        print(f"deactivated {result.affected_rows} user(s)")

        active = await executor.read("users", {"active": 1})
        for user in active.rows:
            print(f"  - {user['name']} ({user['email']})")

        result = await executor.delete("users", {"active": 0})
        print(f"deleted {result.affected_rows} inactive user(s)\n")

        # Concurrent reads share the bounded pool
        await asyncio.gather(*(executor.read("users") for _ in range(10)))

        stats = pools.statistics()
        print("=== Pool statistics ===\n")
        print(f"pools={stats.total_pools} total={stats.total_connections} "
              f"active={stats.active_connections} idle={stats.idle_connections}")

    Path(db_path).unlink()


if __name__ == "__main__":
    asyncio.run(main())
