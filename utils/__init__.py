"""
==========================
Utility Functions Package.
==========================

Execution collaborators for the sql package: connections, executors,
transactions and PostgreSQL error classification.

Modules:
    database_utils: PostgreSQL connectivity and availability checks
    executors: Run compiled queries on SQLAlchemy or psycopg2 connections
    transaction: Isolation levels and serialization-failure retry
    pg_errors: SQLSTATE-based error predicates

The generic transaction() runner is imported from utils.transaction; the
package attribute of that name is the submodule.
"""

__version__ = "1.0.0"
__all__ = [
    'check_database_available',
    'create_sqlalchemy_engine',
    'get_connection_string',
    'wait_for_database',
    'DatabaseConnectionError',
    'SQLAlchemyExecutor',
    'PsycopgExecutor',
    'IsolationLevel',
    'TransactionError',
    'serializable',
    'repeatable_read',
    'read_committed',
    'serializable_ro',
    'repeatable_read_ro',
    'read_committed_ro',
    'serializable_ro_deferrable',
    'RETRYABLE_CODES',
    'get_pgcode',
    'is_pg_error',
    'is_unique_violation',
    'is_foreign_key_violation',
    'is_not_null_violation',
    'is_check_violation',
    'is_serialization_failure',
    'is_deadlock_detected',
    'is_retryable',
]

from .database_utils import (
    DatabaseConnectionError,
    check_database_available,
    create_sqlalchemy_engine,
    get_connection_string,
    wait_for_database,
)
from .executors import PsycopgExecutor, SQLAlchemyExecutor
from .pg_errors import (
    RETRYABLE_CODES,
    get_pgcode,
    is_check_violation,
    is_deadlock_detected,
    is_foreign_key_violation,
    is_not_null_violation,
    is_pg_error,
    is_retryable,
    is_serialization_failure,
    is_unique_violation,
)
from .transaction import (
    IsolationLevel,
    TransactionError,
    read_committed,
    read_committed_ro,
    repeatable_read,
    repeatable_read_ro,
    serializable,
    serializable_ro,
    serializable_ro_deferrable,
)
