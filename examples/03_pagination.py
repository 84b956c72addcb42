"""
Example 03: Pagination

This example pages through a SQLite table with QueryExecutor.paginate and
builds navigation links with the pagination helpers.
"""

import asyncio
import tempfile
from pathlib import Path

from poly_query import ConnectionPoolManager, DatabaseConfig, QueryExecutor
from poly_query.query.pagination import (
    build_count_query,
    generate_pagination_nav,
    get_pagination_summary,
)


async def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    config = DatabaseConfig(dialect="sqlite", database="example", filename=db_path)

    async with ConnectionPoolManager() as pools:
        executor = QueryExecutor(config, pools)
        await executor.execute_query("CREATE TABLE products (id INTEGER PRIMARY KEY, title TEXT)")
        for i in range(1, 48):
            await executor.create("products", {"title": f"Product {i}"})

        page = await executor.paginate("products", page=3, page_size=10, order_by="id")
        info = page.pagination

        print("=== Page 3 ===\n")
        for row in page.data:
            print(f"  {row['id']:>3}  {row['title']}")
        print()
        print(get_pagination_summary(info.page, info.page_size, info.total))

        nav = generate_pagination_nav(info.page, info.page_size, info.total)
        print(f"pages: {list(nav.pages)}  prev={nav.prev}  next={nav.next}\n")

    print("=== Count query for hand-written SQL ===\n")
    print(build_count_query("SELECT id, title FROM products WHERE title LIKE ? ORDER BY id LIMIT 10 OFFSET 20"))

    Path(db_path).unlink()


if __name__ == "__main__":
    asyncio.run(main())
