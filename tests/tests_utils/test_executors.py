"""
=================================================
Comprehensive pytest suite for utils/executors.py
=================================================

Sections:
---------
1. Unit tests - parameter adaptation, row conversion
2. Integration tests - Query.run() through each executor
3. Edge case tests - statements without rows, logging switches

Available markers:
------------------
unit, integration, edge_case

Mocks and helpers:
------------------
- fake_connection (tests/tests_utils/conftest.py): records exec_driver_sql calls
- FakeCursor / FakePsycopgConnection: minimal psycopg2 connection

How to Execute:
---------------
All tests:          python -m pytest tests/tests_utils/test_executors.py -v
By category:        python -m pytest tests/tests_utils/test_executors.py -m unit
"""

import logging

import pytest
from psycopg2.extras import Json, RealDictCursor

from sql import insert, select_one, truncate
from sql.fragment import CompiledQuery
from utils.executors import PsycopgExecutor, SQLAlchemyExecutor, adapt_params

# ====================
# Mock Helper Classes
# ====================

class FakeCursor:
    """Mock psycopg2 cursor."""
    def __init__(self, rows=None):
        self.rows = rows
        self.description = None if rows is None else [('result',)]
        self.executed = []

    def execute(self, statement, params=None):
        self.executed.append((statement, params))

    def fetchall(self):
        return self.rows

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False


class FakePsycopgConnection:
    """Mock psycopg2 connection handing out one FakeCursor."""
    def __init__(self, rows=None):
        self.cursor_obj = FakeCursor(rows)
        self.cursor_factory = None

    def cursor(self, cursor_factory=None):
        self.cursor_factory = cursor_factory
        return self.cursor_obj


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_adapt_params_wraps_dicts_as_json():
    """Dict values are bound as JSON; others are untouched."""
    params = adapt_params([1, 'a', {'k': 'v'}, [1, 2], None])

    assert isinstance(params, tuple)
    assert params[:2] == (1, 'a')
    assert isinstance(params[2], Json)
    assert params[2].adapted == {'k': 'v'}
    assert params[3:] == ([1, 2], None)


@pytest.mark.unit
def test_adapt_params_wraps_lists_of_dicts_as_json():
    """A list holding objects binds as one JSON array; scalar lists stay arrays."""
    rows = [{'id': 1}, {'id': 2}]
    nested = [[{'id': 3}]]

    params = adapt_params([rows, nested, [1, 2], ['a', None], []])

    assert isinstance(params[0], Json)
    assert params[0].adapted == rows
    assert isinstance(params[1], Json)
    assert params[1].adapted == nested
    assert params[2:] == ([1, 2], ['a', None], [])


@pytest.mark.unit
def test_executors_use_format_paramstyle(fake_connection):
    """Both executors speak psycopg2's %s placeholders."""
    assert SQLAlchemyExecutor(fake_connection()).paramstyle == 'format'
    assert PsycopgExecutor(FakePsycopgConnection()).paramstyle == 'format'


@pytest.mark.unit
def test_sqlalchemy_executor_returns_plain_dicts(fake_connection):
    """Row mappings are copied into dicts."""
    connection = fake_connection(rows=[{'result': {'id': 1}}])
    rows = SQLAlchemyExecutor(connection)(CompiledQuery('SELECT %s AS result', [1]))

    assert rows == [{'result': {'id': 1}}]
    assert connection.executed == [('SELECT %s AS result', (1,))]


@pytest.mark.unit
def test_psycopg_executor_uses_real_dict_cursor():
    """The psycopg2 executor asks for a RealDictCursor."""
    connection = FakePsycopgConnection(rows=[{'result': 5}])
    rows = PsycopgExecutor(connection)(CompiledQuery('SELECT %s', ['x']))

    assert rows == [{'result': 5}]
    assert connection.cursor_factory is RealDictCursor
    assert connection.cursor_obj.executed == [('SELECT %s', ('x',))]


# =======================
# 2. INTEGRATION TESTS
# =======================

@pytest.mark.integration
def test_query_run_with_sqlalchemy_executor(fake_connection):
    """Query.run() renders %s placeholders for the executor and decodes the row."""
    connection = fake_connection(rows=[{'result': {'id': 1, 'name': 'Alice'}}])

    result = select_one('users', {'name': 'Alice'}).run(SQLAlchemyExecutor(connection))

    assert result == {'id': 1, 'name': 'Alice'}
    statement, params = connection.executed[0]
    assert statement == 'SELECT to_jsonb(users.*) AS result FROM users AS users WHERE name = %s LIMIT %s'
    assert params == ('Alice', 1)


@pytest.mark.integration
def test_insert_with_json_value_through_psycopg_executor():
    """A dict value reaches psycopg2 wrapped in Json."""
    connection = FakePsycopgConnection(rows=[{'result': {'id': 1}}])

    assert insert('events', {'payload': {'a': 1}}).run(PsycopgExecutor(connection)) == {'id': 1}
    _, params = connection.cursor_obj.executed[0]
    assert isinstance(params[0], Json)


# ===================
# 3. EDGE CASE TESTS
# ===================

@pytest.mark.edge_case
def test_statements_without_rows_return_empty_list(fake_connection):
    """TRUNCATE and friends produce no result set."""
    assert SQLAlchemyExecutor(fake_connection(rows=None))(CompiledQuery('TRUNCATE t', [])) == []
    assert PsycopgExecutor(FakePsycopgConnection(rows=None))(CompiledQuery('TRUNCATE t', [])) == []
    assert truncate('t').run(SQLAlchemyExecutor(fake_connection(rows=None))) is None


@pytest.mark.edge_case
def test_sql_logging_can_be_switched(caplog, fake_connection):
    """log_sql=True logs statement and params at DEBUG; log_sql=False is silent."""
    compiled = CompiledQuery('SELECT %s', ['secret'])

    with caplog.at_level(logging.DEBUG, logger='utils.executors'):
        SQLAlchemyExecutor(fake_connection(rows=[]), log_sql=False)(compiled)
        assert caplog.records == []

        SQLAlchemyExecutor(fake_connection(rows=[]), log_sql=True)(compiled)

    assert caplog.records[0].levelno == logging.DEBUG
    assert caplog.records[0].getMessage() == "SELECT %s -- params: ['secret']"
