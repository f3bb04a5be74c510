"""
Unit tests for dialect quoting and sampling-query synthesis.
"""

from unittest.mock import MagicMock

import pytest

from guardian.db.dialects import (
    DIALECTS,
    MssqlDialect,
    MysqlDialect,
    OracleDialect,
    PostgresDialect,
    SqliteDialect,
    delta_dialect,
    get_dialect,
)


@pytest.mark.unit
class TestQuoting:
    """Tests for identifier quoting"""

    @pytest.mark.parametrize("dialect,name,expected", [
        (MssqlDialect(), "Order]Lines", "[Order]]Lines]"),
        (PostgresDialect(), 'Tax "Id"', '"Tax ""Id"""'),
        (MysqlDialect(), "we`ird", "`we``ird`"),
        (OracleDialect(), "EMAIL", '"EMAIL"'),
        (SqliteDialect(), "Email", '"Email"'),
    ])
    def test_embedded_delimiters_are_doubled(self, dialect, name, expected):
        assert dialect.quote_identifier(name) == expected

    def test_quote_table_without_schema(self):
        assert MssqlDialect().quote_table(None, "T") == "[T]"


@pytest.mark.unit
class TestSamplingQueries:
    """Tests for the bounded sampling query of every dialect"""

    def test_mssql(self):
        query = MssqlDialect().sampling_query("dbo", "Customers", ["Email", "Phone"], 1000)

        assert query == "SELECT TOP (1000) [Email], [Phone] FROM [dbo].[Customers] TABLESAMPLE (1000 ROWS)"

    def test_postgresql(self):
        query = PostgresDialect().sampling_query("public", "users", ["email"], 500, 2.5)

        assert query == (
            'SELECT "email" FROM "public"."users" TABLESAMPLE BERNOULLI (2.5) REPEATABLE (123) LIMIT 500'
        )

    def test_mysql(self):
        query = MysqlDialect().sampling_query("shop", "users", ["email"], 1000)

        assert query == "SELECT `email` FROM `shop`.`users` ORDER BY RAND() LIMIT 1000"

    def test_oracle(self):
        query = OracleDialect().sampling_query("HR", "PEOPLE", ["EMAIL"], 1000, 1.0)

        assert query == 'SELECT "EMAIL" FROM "HR"."PEOPLE" SAMPLE (1) WHERE ROWNUM <= 1000'

    def test_sqlite(self):
        query = SqliteDialect().sampling_query("main", "Customers", ["Email"], 10)

        assert query == 'SELECT "Email" FROM "main"."Customers" ORDER BY RANDOM() LIMIT 10'


@pytest.mark.unit
class TestRegistry:
    """Tests for dialect lookup"""

    @pytest.mark.parametrize("name,expected", [
        ("mssql", "mssql"),
        ("SQLServer", "mssql"),
        ("postgres", "postgresql"),
        ("postgresql", "postgresql"),
        ("mariadb", "mysql"),
        ("oracle", "oracle"),
        ("sqlite", "sqlite"),
    ])
    def test_known_names_and_aliases(self, name, expected):
        assert get_dialect(name).name == expected

    @pytest.mark.parametrize("name", ["db2", "", None])
    def test_unknown_names(self, name):
        assert get_dialect(name) is None

    def test_registry_is_closed_set(self):
        assert set(DIALECTS) == {"mssql", "postgresql", "mysql", "oracle", "sqlite"}


@pytest.mark.unit
class TestTimeouts:
    """Tests for per-query timeouts applied to the session"""

    def test_postgres_sets_statement_timeout(self):
        conn = MagicMock()

        PostgresDialect().apply_timeout(conn, 5)

        assert str(conn.execute.call_args[0][0]) == "SET statement_timeout = 5000"

    def test_mysql_sets_max_execution_time(self):
        conn = MagicMock()

        MysqlDialect().apply_timeout(conn, 2)

        assert str(conn.execute.call_args[0][0]) == "SET SESSION MAX_EXECUTION_TIME = 2000"

    def test_mssql_sets_dbapi_timeout(self):
        conn = MagicMock()

        MssqlDialect().apply_timeout(conn, 120)

        assert conn.connection.dbapi_connection.timeout == 120

    def test_oracle_sets_call_timeout_in_ms(self):
        conn = MagicMock()

        OracleDialect().apply_timeout(conn, 3)

        assert conn.connection.dbapi_connection.call_timeout == 3000

    def test_sqlite_has_no_timeout(self):
        conn = MagicMock()

        SqliteDialect().apply_timeout(conn, 3)

        conn.execute.assert_not_called()


@pytest.mark.unit
class TestDeltaDialect:
    """Tests for choosing the dialect a migration script is read in"""

    @pytest.mark.parametrize("provider,url,expected", [
        ("postgres", None, "postgres"),
        ("mssql", "mysql+pymysql://app@db/shop", "tsql"),
        (None, "mysql+pymysql://app@db/shop", "mysql"),
        (None, "oracle+oracledb://app@db/orcl", "oracle"),
        (None, "sqlite:///demo.db", "sqlite"),
        (None, "Server=db;Database=app", "tsql"),
        (None, None, "tsql"),
    ])
    def test_provider_then_url_then_tsql(self, provider, url, expected):
        assert delta_dialect(provider, url) == expected

    def test_every_dialect_names_a_read_dialect(self):
        assert {d.sql_dialect for d in DIALECTS.values()} == {"tsql", "postgres", "mysql", "oracle", "sqlite"}
