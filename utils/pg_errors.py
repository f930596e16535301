"""
===========================================
PostgreSQL error classification helpers.
===========================================

Driver errors are passed through unchanged by the executors; these helpers
let callers (and utils.transaction) decide what an error means from its
SQLSTATE code. They accept psycopg2 errors directly or wrapped in a
SQLAlchemy DBAPIError.

Example:
    >>> try:
    ...     insert('users', {'email': 'a@example.com'}).run(executor)
    ... except Exception as e:
    ...     if is_unique_violation(e):
    ...         logger.warning("Email already registered")
    ...     else:
    ...         raise
"""

from typing import Optional

from psycopg2 import errorcodes
from sqlalchemy.exc import DBAPIError

RETRYABLE_CODES = (errorcodes.SERIALIZATION_FAILURE, errorcodes.DEADLOCK_DETECTED)


def get_pgcode(error: BaseException) -> Optional[str]:
    """SQLSTATE code of a database error, or None for anything else."""
    if isinstance(error, DBAPIError):
        error = error.orig
    return getattr(error, 'pgcode', None)


def is_pg_error(error: BaseException, *codes: str) -> bool:
    """True if error carries a SQLSTATE code (one of codes, when given)."""
    code = get_pgcode(error)
    if code is None:
        return False
    return not codes or code in codes


def is_unique_violation(error: BaseException) -> bool:
    return is_pg_error(error, errorcodes.UNIQUE_VIOLATION)


def is_foreign_key_violation(error: BaseException) -> bool:
    return is_pg_error(error, errorcodes.FOREIGN_KEY_VIOLATION)


def is_not_null_violation(error: BaseException) -> bool:
    return is_pg_error(error, errorcodes.NOT_NULL_VIOLATION)


def is_check_violation(error: BaseException) -> bool:
    return is_pg_error(error, errorcodes.CHECK_VIOLATION)


def is_serialization_failure(error: BaseException) -> bool:
    return is_pg_error(error, errorcodes.SERIALIZATION_FAILURE)


def is_deadlock_detected(error: BaseException) -> bool:
    return is_pg_error(error, errorcodes.DEADLOCK_DETECTED)


def is_retryable(error: BaseException) -> bool:
    """True for errors a serializable transaction should simply run again."""
    return is_pg_error(error, *RETRYABLE_CODES)
