"""
==============================================
Transactions with isolation levels and retry.
==============================================

transaction() runs a callback inside one database transaction at a chosen
isolation level. The callback receives an executor bound to the
transaction's connection; whatever it returns is returned once the
transaction commits.

Serialization failures (40001) and deadlocks (40P01) are expected under
SERIALIZABLE and REPEATABLE READ: the whole transaction is rolled back and
the callback runs again, with exponential backoff between attempts:

    delay = base_delay * backoff_multiplier ** attempt

Any other error rolls back and propagates unchanged. The callback must
therefore be safe to run more than once (no side effects outside the
database).

Example:
    >>> from sql import select_one, update
    >>> from utils.transaction import serializable
    >>>
    >>> def transfer(executor):
    ...     source = select_one('accounts', {'id': 1}).run(executor)
    ...     update('accounts', {'balance': source['balance'] - 10}, {'id': 1}).run(executor)
    ...     return source['id']
    >>>
    >>> serializable(engine, transfer)
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError

from core.config import config
from utils.executors import SQLAlchemyExecutor
from utils.pg_errors import get_pgcode, is_retryable

logger = logging.getLogger(__name__)


class TransactionError(Exception):
    """Exception raised when a transaction is requested with invalid settings."""
    pass


class IsolationLevel(Enum):
    """Isolation level plus access mode of a transaction."""

    SERIALIZABLE = 'SERIALIZABLE'
    REPEATABLE_READ = 'REPEATABLE READ'
    READ_COMMITTED = 'READ COMMITTED'
    SERIALIZABLE_RO = 'SERIALIZABLE, READ ONLY'
    REPEATABLE_READ_RO = 'REPEATABLE READ, READ ONLY'
    READ_COMMITTED_RO = 'READ COMMITTED, READ ONLY'
    SERIALIZABLE_RO_DEFERRABLE = 'SERIALIZABLE, READ ONLY, DEFERRABLE'

    @property
    def execution_options(self) -> Dict[str, Any]:
        """SQLAlchemy connection execution options for this level."""
        parts = self.value.split(', ')
        options: Dict[str, Any] = {'isolation_level': parts[0]}
        if 'READ ONLY' in parts:
            options['postgresql_readonly'] = True
        if 'DEFERRABLE' in parts:
            options['postgresql_deferrable'] = True
        return options


def _isolation_level(level: Union[IsolationLevel, str, None]) -> IsolationLevel:
    if isinstance(level, IsolationLevel):
        return level
    value = (level or config.transaction.isolation_level).upper()
    try:
        return IsolationLevel(value)
    except ValueError:
        raise TransactionError(f"Unknown isolation level '{value}'")


def transaction(
    engine: Engine,
    callback: Callable[[SQLAlchemyExecutor], Any],
    isolation_level: Union[IsolationLevel, str, None] = None,
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    backoff_multiplier: Optional[float] = None
) -> Any:
    """
    Run callback in a transaction, retrying serialization failures.

    Args:
        engine: SQLAlchemy Engine
        callback: Called with an executor bound to the transaction
        isolation_level: IsolationLevel or its name (default TXN_ISOLATION_LEVEL)
        max_attempts: Attempts in total (default TXN_MAX_ATTEMPTS)
        base_delay: First retry delay in seconds (default TXN_RETRY_BASE_DELAY)
        backoff_multiplier: Delay growth per attempt (default TXN_BACKOFF_MULTIPLIER)

    Returns:
        The callback's return value

    Raises:
        TransactionError: On an unknown isolation level or max_attempts < 1
        DBAPIError: The last serialization failure once attempts run out, or
            any other database error immediately
    """
    level = _isolation_level(isolation_level)
    settings = config.transaction
    max_attempts = settings.max_attempts if max_attempts is None else max_attempts
    base_delay = settings.retry_base_delay if base_delay is None else base_delay
    backoff_multiplier = settings.backoff_multiplier if backoff_multiplier is None else backoff_multiplier
    if max_attempts < 1:
        raise TransactionError(f"max_attempts must be at least 1, got {max_attempts}")

    for attempt in range(max_attempts):
        try:
            with engine.connect() as connection:
                connection.execution_options(**level.execution_options)
                with connection.begin():
                    result = callback(SQLAlchemyExecutor(connection))
            if attempt > 0:
                logger.info(f"Transaction succeeded after {attempt} retries")
            return result

        except DBAPIError as e:
            if not is_retryable(e):
                raise
            if attempt + 1 >= max_attempts:
                logger.error(f"Transaction failed after {max_attempts} attempts ({get_pgcode(e)})")
                raise
            delay = base_delay * (backoff_multiplier ** attempt)
            logger.warning(
                f"Transaction attempt {attempt + 1} hit {get_pgcode(e)}, retrying in {delay:.2f}s"
            )
            time.sleep(delay)


def serializable(engine: Engine, callback: Callable, **kwargs: Any) -> Any:
    return transaction(engine, callback, IsolationLevel.SERIALIZABLE, **kwargs)


def repeatable_read(engine: Engine, callback: Callable, **kwargs: Any) -> Any:
    return transaction(engine, callback, IsolationLevel.REPEATABLE_READ, **kwargs)


def read_committed(engine: Engine, callback: Callable, **kwargs: Any) -> Any:
    return transaction(engine, callback, IsolationLevel.READ_COMMITTED, **kwargs)


def serializable_ro(engine: Engine, callback: Callable, **kwargs: Any) -> Any:
    return transaction(engine, callback, IsolationLevel.SERIALIZABLE_RO, **kwargs)


def repeatable_read_ro(engine: Engine, callback: Callable, **kwargs: Any) -> Any:
    return transaction(engine, callback, IsolationLevel.REPEATABLE_READ_RO, **kwargs)


def read_committed_ro(engine: Engine, callback: Callable, **kwargs: Any) -> Any:
    return transaction(engine, callback, IsolationLevel.READ_COMMITTED_RO, **kwargs)


def serializable_ro_deferrable(engine: Engine, callback: Callable, **kwargs: Any) -> Any:
    """Read-only serializable snapshot that never fails with 40001."""
    return transaction(engine, callback, IsolationLevel.SERIALIZABLE_RO_DEFERRABLE, **kwargs)
