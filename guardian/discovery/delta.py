import re
import time
import logging
from dataclasses import dataclass
from typing import List, Set
import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError
from guardian.errors import ExitCode, GuardianError


@dataclass(frozen=True)
class ScanTarget:
    schema: str
    table: str
    column: str

    @property
    def location(self):
        return f"{self.schema}.{self.table}.{self.column}"


# sqlcmd batch separator: GO alone on its line, optionally with a repeat count.
GO_RE = re.compile(r'^[ \t]*GO(?:[ \t]+\d+)?[ \t]*;?[ \t]*$', re.IGNORECASE | re.MULTILINE)
# Table DDL that sqlglot could only keep as raw text.
TABLE_DDL_RE = re.compile(r'\s*(?:CREATE|ALTER)(?:\s+\w+){0,3}?\s+TABLE\b', re.IGNORECASE)


class ParseTimeout(Exception):
    pass


class UnsupportedStatement(Exception):
    pass


class _Deadline:
    def __init__(self, seconds):
        self.expires = time.monotonic() + seconds if seconds is not None else None

    def check(self):
        if self.expires is not None and time.monotonic() >= self.expires:
            raise ParseTimeout()


def split_batches(sql_text, dialect) -> List[str]:
    """T-SQL scripts are cut at GO lines; every other dialect is one batch."""
    if dialect != 'tsql':
        return [sql_text]
    return [batch for batch in GO_RE.split(sql_text) if batch.strip()]


def _describe(error):
    details = getattr(error, 'errors', None)
    if details:
        first = details[0]
        return f"{first.get('description')} (line {first.get('line')}, col {first.get('col')})"
    return str(error)


class DeltaParser:
    """
    Extracts the (schema, table, column) locations a migration script
    introduces or alters.

    The script is parsed with sqlglot in the dialect of the scanned database
    ('tsql', 'postgres', 'mysql', 'oracle' or 'sqlite'), so identifiers follow
    that dialect's quoting rules. Targets come from CREATE TABLE column
    definitions and from ALTER TABLE actions that add or alter a column.
    Table DDL that sqlglot cannot model fails the parse instead of being
    skipped.
    """

    MAX_SQL_CHARS = 20 * 1024 * 1024

    def __init__(self, default_schema="dbo", timeout=10.0, max_chars=None, dialect="tsql"):
        self.default_schema = default_schema
        self.timeout = timeout
        self.max_chars = max_chars or self.MAX_SQL_CHARS
        self.dialect = dialect
        self.logger = logging.getLogger("DeltaParser")

    def parse_delta(self, sql_text) -> Set[ScanTarget]:
        self.logger.info(f"Parsing SQL file ({self.dialect}) to identify schema delta...")
        if not sql_text or not sql_text.strip():
            self.logger.info("SQL delta is empty.")
            return set()

        if len(sql_text) > self.max_chars:
            raise GuardianError(
                ExitCode.SQL_ANALYSIS_FAILED, 'SQL_PARSE_TIMEOUT',
                f"Parsing the SQL file was aborted: {len(sql_text)} characters exceeds the limit of {self.max_chars}.")

        try:
            targets = self._extract(sql_text, _Deadline(self.timeout))
        except ParseTimeout as e:
            self.logger.error(f"SQL delta parsing exceeded {self.timeout}s.")
            raise GuardianError(
                ExitCode.SQL_ANALYSIS_FAILED, 'SQL_PARSE_TIMEOUT',
                "Parsing the SQL file failed due to a timeout. The file may be unusually large or complex.") from e
        except UnsupportedStatement as e:
            self.logger.error(f"Unsupported table DDL in SQL delta: {e}")
            raise GuardianError(
                ExitCode.SQL_ANALYSIS_FAILED, 'SQL_PARSE_ERROR',
                f"The columns affected by this statement cannot be determined: {e}. {self._separator_hint()}") from e
        except SqlglotError as e:
            self.logger.error(f"SQL delta is not valid {self.dialect} SQL: {_describe(e)}")
            raise GuardianError(
                ExitCode.SQL_ANALYSIS_FAILED, 'SQL_PARSE_ERROR',
                f"The SQL file could not be parsed as {self.dialect}: {_describe(e)}. {self._separator_hint()}") from e
        except Exception as e:
            self.logger.error(f"An unexpected error occurred while parsing the SQL delta: {e}")
            raise GuardianError(
                ExitCode.SQL_ANALYSIS_FAILED, 'SQL_PARSE_ERROR',
                "An unexpected error occurred during SQL file analysis.") from e

        self.logger.info(f"SQL delta parsed. Found {len(targets)} new or altered columns to scan.")
        return targets

    def _separator_hint(self):
        separators = "';' or GO" if self.dialect == 'tsql' else "';'"
        return f"Statements must be separated by {separators}."

    def _extract(self, sql_text, deadline):
        targets = set()
        for batch in split_batches(sql_text, self.dialect):
            deadline.check()
            for statement in sqlglot.parse(batch, read=self.dialect):
                deadline.check()
                if statement is not None:
                    self._from_statement(statement, targets)
        return targets

    def _from_statement(self, statement, targets):
        if isinstance(statement, exp.Create):
            self._from_create(statement, targets)
        elif isinstance(statement, exp.Alter):
            self._from_alter(statement, targets)
        elif isinstance(statement, exp.Command):
            text = f"{statement.name} {statement.text('expression')}"
            if TABLE_DDL_RE.match(text):
                raise UnsupportedStatement(" ".join(text.split())[:200])

    def _qualify(self, table: exp.Table):
        return table.db or self.default_schema, table.name

    @staticmethod
    def _is_temporary(create, table):
        if create.find(exp.TemporaryProperty) is not None:
            return True
        # T-SQL #local and ##global tables
        ident = table.this
        if isinstance(ident, exp.Identifier) and (ident.args.get('temporary') or ident.args.get('global')):
            return True
        return table.name.startswith('#')

    def _from_create(self, create, targets):
        if (create.args.get('kind') or '').upper() != 'TABLE':
            return
        definition = create.this
        if not isinstance(definition, exp.Schema):
            self.logger.debug("Skipping CREATE TABLE without a column list.")
            return
        table = definition.this
        if self._is_temporary(create, table):
            self.logger.debug(f"Skipping temporary table '{table.name}'.")
            return

        schema, name = self._qualify(table)
        for column in definition.expressions:
            if isinstance(column, exp.ColumnDef):
                targets.add(ScanTarget(schema, name, column.name))

    def _from_alter(self, alter, targets):
        if (alter.args.get('kind') or '').upper() != 'TABLE':
            return
        schema, name = self._qualify(alter.this)
        for action in alter.args.get('actions') or []:
            if isinstance(action, exp.AlterColumn):
                targets.add(ScanTarget(schema, name, action.this.name))
                continue
            # ADD a INT, b INT / ADD COLUMN a int / ADD (a INT, b INT)
            for column in action.find_all(exp.ColumnDef):
                targets.add(ScanTarget(schema, name, column.name))
