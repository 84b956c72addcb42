"""Unit tests for placeholder translation to driver paramstyles."""

from __future__ import annotations

import pytest

from poly_query.core.exceptions import ExecutionError
from poly_query.core.params import to_driver_params


class TestToDriverParams:
    def test_mysql_qmark_to_format(self) -> None:
        sql, params = to_driver_params("SELECT * FROM t WHERE a = ? AND b = ?", [1, 2], "mysql")
        assert sql == "SELECT * FROM t WHERE a = %s AND b = %s"
        assert params == (1, 2)

    def test_mysql_percent_doubled(self) -> None:
        sql, _ = to_driver_params("SELECT * FROM t WHERE a = ? AND b LIKE 'x%'", [1], "mysql")
        assert sql == "SELECT * FROM t WHERE a = %s AND b LIKE 'x%%'"

    def test_mysql_literal_question_mark_untouched(self) -> None:
        sql, _ = to_driver_params("SELECT * FROM t WHERE a = '?' AND b = ?", [1], "mysql")
        assert sql == "SELECT * FROM t WHERE a = '?' AND b = %s"

    def test_postgresql_reorders_by_index(self) -> None:
        sql, params = to_driver_params("SELECT * FROM t WHERE a = $2 AND b = $1", ["x", "y"], "postgresql")
        assert sql == "SELECT * FROM t WHERE a = %s AND b = %s"
        assert params == ("y", "x")

    def test_postgresql_repeated_placeholder(self) -> None:
        sql, params = to_driver_params("SELECT * FROM t WHERE a = $1 OR b = $1", [9], "postgresql")
        assert sql == "SELECT * FROM t WHERE a = %s OR b = %s"
        assert params == (9, 9)

    def test_postgresql_quoted_placeholder_untouched(self) -> None:
        sql, params = to_driver_params("SELECT '$1', \"$2\", $1", ["v"], "postgresql")
        assert sql == "SELECT '$1', \"$2\", %s"
        assert params == ("v",)

    def test_postgresql_typecast_untouched(self) -> None:
        sql, _ = to_driver_params("SELECT value::integer FROM t WHERE id = $1", [1], "postgresql")
        assert sql == "SELECT value::integer FROM t WHERE id = %s"

    def test_index_beyond_params_raises(self) -> None:
        with pytest.raises(ExecutionError) as exc_info:
            to_driver_params("SELECT * FROM t WHERE a = $3", [1], "postgresql")
        assert exc_info.value.code == "PARAMETER_BINDING_FAILED"

    def test_mssql_named_to_qmark(self) -> None:
        sql, params = to_driver_params(
            "SELECT * FROM [t] WHERE [a] = @param2 AND [b] = @param1", [1, 2], "mssql"
        )
        assert sql == "SELECT * FROM [t] WHERE [a] = ? AND [b] = ?"
        assert params == (2, 1)

    def test_mssql_double_digit_index(self) -> None:
        placeholders = ", ".join(f"@param{i}" for i in range(1, 12))
        sql, params = to_driver_params(f"SELECT {placeholders}", list(range(1, 12)), "mssql")
        assert sql == "SELECT " + ", ".join("?" for _ in range(11))
        assert params == tuple(range(1, 12))

    @pytest.mark.parametrize("dialect", ["oracle", "sqlite"])
    def test_native_paramstyles_unchanged(self, dialect: str) -> None:
        sql = "SELECT * FROM t WHERE a = :param1 AND b LIKE '1%'"
        assert to_driver_params(sql, [1], dialect) == (sql, (1,))

    def test_no_params_leaves_sql_alone(self) -> None:
        assert to_driver_params("SELECT '100%'", None, "mysql") == ("SELECT '100%'", ())
