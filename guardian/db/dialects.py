"""
SQL dialects supported by the sampler.

Each dialect owns its identifier quoting, its bounded sampling query and the
way a per-query timeout is applied to the session. The set is closed: a new
engine is supported by adding a subclass and registering it in DIALECTS.
"""

from abc import ABC, abstractmethod
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError


class SamplingDialect(ABC):
    name = None
    # sqlglot dialect used to read migration scripts for this engine
    sql_dialect = None

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        pass

    def quote_table(self, schema, table):
        if schema:
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(table)}"
        return self.quote_identifier(table)

    def quote_columns(self, columns):
        return ", ".join(self.quote_identifier(c) for c in columns)

    @abstractmethod
    def sampling_query(self, schema, table, columns, sample_size, sample_percent=1.0) -> str:
        """Bounded SELECT over the given columns; never returns more than sample_size rows."""
        pass

    def apply_timeout(self, conn, seconds):
        """Bound every following statement on this connection. No-op by default."""
        pass

    def __repr__(self):
        return f"{self.__class__.__name__}()"


def _percent(value):
    # Render 1.0 as "1" so the generated SQL stays readable.
    return f"{value:g}"


class MssqlDialect(SamplingDialect):
    name = 'mssql'
    sql_dialect = 'tsql'

    def quote_identifier(self, name):
        return "[" + name.replace("]", "]]") + "]"

    def sampling_query(self, schema, table, columns, sample_size, sample_percent=1.0):
        return (
            f"SELECT TOP ({sample_size}) {self.quote_columns(columns)} "
            f"FROM {self.quote_table(schema, table)} TABLESAMPLE ({sample_size} ROWS)"
        )

    def apply_timeout(self, conn, seconds):
        # pyodbc exposes the statement timeout on the DBAPI connection.
        conn.connection.dbapi_connection.timeout = int(seconds)


class PostgresDialect(SamplingDialect):
    name = 'postgresql'
    sql_dialect = 'postgres'

    def quote_identifier(self, name):
        return '"' + name.replace('"', '""') + '"'

    def sampling_query(self, schema, table, columns, sample_size, sample_percent=1.0):
        return (
            f"SELECT {self.quote_columns(columns)} FROM {self.quote_table(schema, table)} "
            f"TABLESAMPLE BERNOULLI ({_percent(sample_percent)}) REPEATABLE (123) LIMIT {sample_size}"
        )

    def apply_timeout(self, conn, seconds):
        conn.execute(text(f"SET statement_timeout = {int(seconds * 1000)}"))


class MysqlDialect(SamplingDialect):
    name = 'mysql'
    sql_dialect = 'mysql'

    def quote_identifier(self, name):
        return "`" + name.replace("`", "``") + "`"

    def sampling_query(self, schema, table, columns, sample_size, sample_percent=1.0):
        # No native TABLESAMPLE; ORDER BY RAND() is slow on huge tables but always correct.
        return (
            f"SELECT {self.quote_columns(columns)} FROM {self.quote_table(schema, table)} "
            f"ORDER BY RAND() LIMIT {sample_size}"
        )

    def apply_timeout(self, conn, seconds):
        conn.execute(text(f"SET SESSION MAX_EXECUTION_TIME = {int(seconds * 1000)}"))


class OracleDialect(SamplingDialect):
    name = 'oracle'
    sql_dialect = 'oracle'

    def quote_identifier(self, name):
        return '"' + name.replace('"', '""') + '"'

    def sampling_query(self, schema, table, columns, sample_size, sample_percent=1.0):
        return (
            f"SELECT {self.quote_columns(columns)} FROM {self.quote_table(schema, table)} "
            f"SAMPLE ({_percent(sample_percent)}) WHERE ROWNUM <= {sample_size}"
        )

    def apply_timeout(self, conn, seconds):
        # python-oracledb: round-trip timeout in milliseconds.
        conn.connection.dbapi_connection.call_timeout = int(seconds * 1000)


class SqliteDialect(SamplingDialect):
    name = 'sqlite'
    sql_dialect = 'sqlite'

    def quote_identifier(self, name):
        return '"' + name.replace('"', '""') + '"'

    def sampling_query(self, schema, table, columns, sample_size, sample_percent=1.0):
        return (
            f"SELECT {self.quote_columns(columns)} FROM {self.quote_table(schema, table)} "
            f"ORDER BY RANDOM() LIMIT {sample_size}"
        )


DIALECTS = {
    'mssql': MssqlDialect(),
    'postgresql': PostgresDialect(),
    'mysql': MysqlDialect(),
    'oracle': OracleDialect(),
    'sqlite': SqliteDialect(),
}

# SQLAlchemy dialect names / common provider spellings that map onto the above.
ALIASES = {
    'sqlserver': 'mssql',
    'azure': 'mssql',
    'postgres': 'postgresql',
    'mariadb': 'mysql',
}


def get_dialect(name):
    """Returns the SamplingDialect for a provider name, or None if unsupported."""
    if not name:
        return None
    key = name.lower()
    return DIALECTS.get(ALIASES.get(key, key))


def delta_dialect(provider=None, url=None):
    """
    sqlglot dialect for reading the migration script: the configured provider,
    else the backend named by a SQLAlchemy URL, else T-SQL.
    """
    dialect = get_dialect(provider)
    if dialect is None and url:
        try:
            dialect = get_dialect(make_url(url).get_backend_name())
        except ArgumentError:
            dialect = None
    return (dialect or DIALECTS['mssql']).sql_dialect
