"""
================================================
Executors: run compiled queries on a connection.
================================================

An executor is any callable taking a CompiledQuery and returning a list of
row mappings. Query.run() renders in the executor's ``paramstyle`` before
calling it. Both executors here speak psycopg2's 'format' style (%s).

Driver errors are never caught: they reach the caller unchanged, where
utils.pg_errors can classify them.

Example:
    >>> from sql import select, ALL
    >>> from utils.executors import SQLAlchemyExecutor
    >>>
    >>> with engine.begin() as connection:
    ...     users = select('users', ALL).run(SQLAlchemyExecutor(connection))
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from psycopg2.extras import Json, RealDictCursor
from sqlalchemy.engine import Connection

from core.config import config
from core.logger import format_query_for_log
from sql.fragment import CompiledQuery
from sql.render import FORMAT

logger = logging.getLogger(__name__)


def _is_json_value(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    return isinstance(value, list) and any(_is_json_value(item) for item in value)


def adapt_params(params: Sequence[Any]) -> Tuple[Any, ...]:
    """Prepare parameter values for psycopg2.

    Dicts, and lists holding a dict at any depth, are wrapped in
    psycopg2.extras.Json so they bind as json/jsonb; everything else (plain
    lists become arrays) is left to psycopg2's own adapters.
    """
    return tuple(Json(value) if _is_json_value(value) else value for value in params)


class _BaseExecutor:
    """Shared statement logging for the executors."""

    paramstyle = FORMAT

    def __init__(self, log_sql: Optional[bool] = None):
        self.log_sql = config.query.log_sql if log_sql is None else log_sql

    def _log(self, compiled: CompiledQuery) -> None:
        if self.log_sql and logger.isEnabledFor(logging.DEBUG):
            logger.debug(format_query_for_log(
                compiled.text, compiled.params, max_param_length=config.query.log_param_length
            ))


class SQLAlchemyExecutor(_BaseExecutor):
    """Execute through a SQLAlchemy Connection (psycopg2 dialect).

    Statements go through Connection.exec_driver_sql, so they take part in
    whatever transaction the connection is in.

    Args:
        connection: Open SQLAlchemy Connection
        log_sql: Override QUERY_LOG_SQL for this executor
    """

    def __init__(self, connection: Connection, log_sql: Optional[bool] = None):
        super().__init__(log_sql)
        self.connection = connection

    def __call__(self, compiled: CompiledQuery) -> List[Dict[str, Any]]:
        self._log(compiled)
        result = self.connection.exec_driver_sql(compiled.text, adapt_params(compiled.params))
        if not result.returns_rows:
            return []
        return [dict(row) for row in result.mappings()]


class PsycopgExecutor(_BaseExecutor):
    """Execute on a raw psycopg2 connection using a RealDictCursor.

    Transaction control (commit/rollback) stays with the caller.

    Args:
        connection: Open psycopg2 connection
        log_sql: Override QUERY_LOG_SQL for this executor
    """

    def __init__(self, connection: Any, log_sql: Optional[bool] = None):
        super().__init__(log_sql)
        self.connection = connection

    def __call__(self, compiled: CompiledQuery) -> List[Dict[str, Any]]:
        self._log(compiled)
        with self.connection.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(compiled.text, adapt_params(compiled.params))
            if cursor.description is None:
                return []
            return [dict(row) for row in cursor.fetchall()]
