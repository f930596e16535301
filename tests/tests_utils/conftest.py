"""
Shared fakes for the utils package tests.

Key fixtures:
- fake_connection: factory for FakeConnection instances (SQLAlchemy Connection stand-in).
- fake_engine: factory for FakeEngine instances handing out a fresh FakeConnection per connect().
- pg_error: factory building SQLAlchemy DBAPIErrors that carry a SQLSTATE.
"""

import pytest
from sqlalchemy.exc import OperationalError


class FakeDriverError(Exception):
    """Stand-in for a psycopg2 error: only the pgcode attribute matters."""

    def __init__(self, pgcode, message='driver error'):
        super().__init__(message)
        self.pgcode = pgcode


class FakeResult:
    """Mock SQLAlchemy CursorResult."""
    def __init__(self, rows=None):
        self.rows = rows
        self.returns_rows = rows is not None

    def mappings(self):
        return list(self.rows)


class FakeTransaction:
    """Mock Connection.begin() context recording commit/rollback."""
    def __init__(self, connection):
        self.connection = connection

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.connection.events.append('rollback' if exc_type else 'commit')
        return False


class FakeConnection:
    """Mock SQLAlchemy Connection."""
    def __init__(self, rows=None):
        self.rows = rows
        self.executed = []
        self.options = {}
        self.events = []
        self.closed = False

    def execution_options(self, **options):
        self.options.update(options)
        return self

    def begin(self):
        self.events.append('begin')
        return FakeTransaction(self)

    def exec_driver_sql(self, statement, parameters=None):
        self.executed.append((statement, parameters))
        return FakeResult(self.rows)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.closed = True
        return False


class FakeEngine:
    """Mock SQLAlchemy Engine handing out a fresh FakeConnection per connect()."""
    def __init__(self, rows=None):
        self.rows = rows
        self.connections = []

    def connect(self):
        connection = FakeConnection(self.rows)
        self.connections.append(connection)
        return connection


@pytest.fixture
def fake_connection():
    """Factory building FakeConnection instances returning the given rows."""
    def factory(rows=None):
        return FakeConnection(rows)
    return factory


@pytest.fixture
def fake_engine():
    """Factory building FakeEngine instances."""
    def factory(rows=None):
        return FakeEngine(rows)
    return factory


@pytest.fixture
def pg_error():
    """Factory building a DBAPIError wrapping a driver error with the given SQLSTATE."""
    def factory(pgcode):
        return OperationalError('SELECT 1', (), FakeDriverError(pgcode))
    return factory
