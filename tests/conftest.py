"""
Pytest configuration and fixtures for the guardian test suite.

Database tests run against throw-away SQLite files created in tmp_path.
"""
import pytest
from faker import Faker
from sqlalchemy import create_engine, text

from guardian.config import Config
from guardian.discovery import ScanTarget, Violation
from guardian.rules import RuleLibrary


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: tests that need no database")
    config.addinivalue_line("markers", "integration: tests against a real SQLite database")
    config.addinivalue_line("markers", "e2e: end-to-end runs of the scan pipeline")


@pytest.fixture
def fake():
    faker = Faker()
    Faker.seed(1234)
    return faker


@pytest.fixture
def rule_library():
    library = RuleLibrary()
    library.initialize()
    return library


@pytest.fixture
def make_violation(rule_library):
    """Builds a Violation for a rule code at schema.table.column."""
    def _make(code="PII_001", schema="dbo", table="Customers", column="Email", value="jane@example.com"):
        return Violation(rule_library.get_rule(code), ScanTarget(schema, table, column), value)
    return _make


@pytest.fixture
def sqlite_db(tmp_path):
    """
    Creates a SQLite database file and returns (url, execute) where execute
    runs DDL/DML statements against it.
    """
    url = f"sqlite:///{tmp_path / 'scan.db'}"
    engine = create_engine(url)

    def execute(*statements, params=None):
        with engine.begin() as conn:
            for statement in statements:
                if params is not None:
                    conn.execute(text(statement), params)
                else:
                    conn.execute(text(statement))

    yield url, execute
    engine.dispose()


@pytest.fixture
def make_config(tmp_path):
    """
    Builds a Config from an explicit environment. File paths default into
    tmp_path so nothing touches the working directory.
    """
    def _make(**overrides):
        env = {
            'DB_CONNECTION_STRING': 'sqlite://',
            'GUARDIAN_SQL_FILE_PATH': str(tmp_path / 'delta.sql'),
            'GUARDIAN_EXCEPTIONS_FILE_PATH': str(tmp_path / 'guardian.exceptions.json'),
            'GUARDIAN_PATTERNS_FILE_PATH': str(tmp_path / 'guardian.patterns.json'),
            'GUARDIAN_REPORT_PATH': str(tmp_path / 'guardian-report.json'),
            'GUARDIAN_LOG_FILE': '',
        }
        env.update({k: v for k, v in overrides.items() if v is not None})
        for k in [k for k, v in overrides.items() if v is None]:
            env.pop(k, None)
        return Config(environ=env)
    return _make
