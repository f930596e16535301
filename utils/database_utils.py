"""
==================================================
Database connectivity utilities for PostgreSQL.
==================================================

Connection helpers used by the executors and transaction runner: URL
building from core.config, engine creation and availability checks.

Example:
    >>> from utils.database_utils import create_sqlalchemy_engine, wait_for_database
    >>>
    >>> wait_for_database(max_retries=5)
    >>> engine = create_sqlalchemy_engine()
"""

import logging
import time
from typing import Optional
from urllib.parse import quote_plus

import psycopg2
from psycopg2 import OperationalError
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine

from core.config import config

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """Exception raised when the database cannot be reached."""
    pass


def get_connection_string(
    host: Optional[str] = None,
    port: Optional[int] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    database: Optional[str] = None
) -> str:
    """
    Build a PostgreSQL connection string.

    Arguments left as None come from core.config. The password is
    URL-escaped.

    Example:
        >>> get_connection_string(database='shop')
        'postgresql://postgres:@localhost:5432/shop'
    """
    host = host if host is not None else config.db.host
    port = port if port is not None else config.db.port
    user = user if user is not None else config.db.user
    password = password if password is not None else config.db.password
    database = database if database is not None else config.db.database

    return f"postgresql://{user}:{quote_plus(password)}@{host}:{port}/{database}"


def create_sqlalchemy_engine(
    url: Optional[str] = None,
    database: Optional[str] = None,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10
) -> Engine:
    """
    Create a SQLAlchemy engine with connection pooling.

    Args:
        url: Full database URL; built from core.config when omitted
        database: Database name override when building from config
        echo: Enable SQLAlchemy statement echo
        pool_size: Connection pool size
        max_overflow: Maximum overflow connections

    Returns:
        Configured SQLAlchemy Engine
    """
    connection_url = url or URL.create(
        drivername='postgresql+psycopg2',
        username=config.db.user,
        password=config.db.password,
        host=config.db.host,
        port=config.db.port,
        database=database or config.db.database
    )
    return create_engine(
        connection_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True
    )


def check_database_available(database: Optional[str] = None, timeout: int = 5) -> bool:
    """
    Check whether PostgreSQL accepts connections.

    Args:
        database: Database name (defaults to config)
        timeout: Connection timeout in seconds

    Returns:
        True if a connection could be opened, False otherwise
    """
    try:
        conn = psycopg2.connect(connect_timeout=timeout, **config.get_connection_params(database))
        conn.close()
        return True
    except OperationalError as e:
        logger.debug(f"Database not available: {e}")
        return False


def wait_for_database(
    database: Optional[str] = None,
    max_retries: int = 10,
    retry_delay: float = 2,
    timeout: int = 5
) -> bool:
    """
    Wait for PostgreSQL to accept connections.

    Returns:
        True once the database is available

    Raises:
        DatabaseConnectionError: If it never becomes available
    """
    target = f"{config.db.host}:{config.db.port}/{database or config.db.database}"
    logger.info(f"Waiting for PostgreSQL at {target}...")

    for attempt in range(1, max_retries + 1):
        if check_database_available(database, timeout):
            logger.info(f"PostgreSQL is available (attempt {attempt}/{max_retries})")
            return True

        if attempt < max_retries:
            logger.warning(
                f"PostgreSQL not available yet (attempt {attempt}/{max_retries}), "
                f"retrying in {retry_delay}s..."
            )
            time.sleep(retry_delay)

    error_msg = f"PostgreSQL at {target} did not become available after {max_retries} attempts"
    logger.error(error_msg)
    raise DatabaseConnectionError(error_msg)
