"""
Example 01: Query Builder

This example renders the same SELECT for every supported dialect and shows the
parameterized DML helpers.
"""

from poly_query import DatabaseDialect, QueryBuilder, build_delete, build_insert, build_update


def main():
    print("=== One query, five dialects ===\n")

    for dialect in DatabaseDialect:
        result = (
            QueryBuilder(dialect)
            .select(["u.id", "u.name", "COUNT(o.id) AS orders"])
            .from_("users", "u")
            .left_join("orders", "o.user_id = u.id", alias="o")
            .where("u.active", "=", True)
            .where_in("u.role", ["admin", "editor"])
            .group_by(["u.id", "u.name"])
            .having("COUNT(o.id)", ">", 2)
            .order_by("u.name")
            .limit(10)
            .offset(20)
            .build()
        )
        print(f"[{dialect.value}]")
        print(f"  {result.query}")
        print(f"  params: {result.params}\n")

    print("=== DML helpers ===\n")

    insert = build_insert("users", {"name": "Alice", "email": "alice@example.com"}, "postgresql")
    print(f"insert: {insert.query}  {insert.params}")

    update = build_update("users", {"active": False}, {"id": 7}, "mssql")
    print(f"update: {update.query}  {update.params}")

    delete = build_delete("users", {"id": 5}, "mysql")
    print(f"delete: {delete.query}  {delete.params}\n")

    # Structural problems surface at build time
    validation = QueryBuilder().select("id").validate_query()
    print(f"validate_query without FROM: valid={validation.valid}, errors={[str(e) for e in validation.errors]}")


if __name__ == "__main__":
    main()
