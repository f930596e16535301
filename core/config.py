"""
==================================================
Configuration management for the query toolkit.
==================================================

Loads settings from environment variables (.env file at the project root)
and exposes them through a Config singleton, one dataclass per concern:

    db           POSTGRES_HOST, POSTGRES_PORT, POSTGRES_USER,
                 POSTGRES_PASSWORD, POSTGRES_DB
    query        QUERY_LOG_SQL, QUERY_LOG_PARAM_LENGTH
    transaction  TXN_MAX_ATTEMPTS, TXN_RETRY_BASE_DELAY,
                 TXN_BACKOFF_MULTIPLIER, TXN_ISOLATION_LEVEL
    logging      LOG_LEVEL, LOG_FILE, LOG_DIR

The sql package itself never reads configuration; only the executors,
transaction helpers and logging setup do.

Example:
    >>> from core.config import config
    >>>
    >>> url = config.get_connection_string()
    >>> print(f"Retrying up to {config.transaction.max_attempts} times")
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

ISOLATION_LEVELS = ('SERIALIZABLE', 'REPEATABLE READ', 'READ COMMITTED')


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class DatabaseConfig:
    """Database connection settings.

    Attributes:
        host: PostgreSQL server hostname or IP address
        port: PostgreSQL server port number
        user: Database username
        password: Database password
        database: Database name
    """

    host: str
    port: int
    user: str
    password: str
    database: str

    def get_connection_string(self, database: Optional[str] = None) -> str:
        """Get a SQLAlchemy-compatible PostgreSQL URL.

        Args:
            database: Database to connect to (defaults to the configured one)
        """
        db_name = database or self.database
        user = quote(self.user, safe="")
        password = quote(self.password, safe="")
        return f"postgresql://{user}:{password}@{self.host}:{self.port}/{db_name}"

    def get_connection_params(self, database: Optional[str] = None) -> dict:
        """Get keyword arguments for psycopg2.connect()."""
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'dbname': database or self.database
        }


@dataclass
class QueryConfig:
    """Statement execution settings.

    Attributes:
        log_sql: If True, executors log every statement at DEBUG
        log_param_length: Longest parameter repr shown in statement logs
    """

    log_sql: bool = True
    log_param_length: int = 80


@dataclass
class TransactionConfig:
    """Transaction retry settings.

    Attributes:
        max_attempts: Attempts before a serialization failure is re-raised
        retry_base_delay: Seconds to wait after the first failure
        backoff_multiplier: Growth factor of the delay per attempt
        isolation_level: Default isolation level
    """

    max_attempts: int = 5
    retry_base_delay: float = 0.05
    backoff_multiplier: float = 2.0
    isolation_level: str = 'SERIALIZABLE'

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"TXN_MAX_ATTEMPTS must be at least 1, got {self.max_attempts}")
        if self.isolation_level not in ISOLATION_LEVELS:
            raise ValueError(
                f"TXN_ISOLATION_LEVEL must be one of {ISOLATION_LEVELS}, got '{self.isolation_level}'"
            )


@dataclass
class LoggingConfig:
    """Logging settings.

    Attributes:
        level: Root log level
        log_file: Optional log file name
        log_dir: Directory for the log file
    """

    level: str = 'INFO'
    log_file: Optional[str] = None
    log_dir: str = 'logs'


class Config:
    """Centralized configuration manager.

    Attributes:
        db: DatabaseConfig with connection settings
        query: QueryConfig with statement logging settings
        transaction: TransactionConfig with retry settings
        logging: LoggingConfig with log settings

    Example:
        >>> config = Config()
        >>> config.query.log_sql
        True
    """

    def __init__(self):
        """Read every section from the environment."""
        self.db = DatabaseConfig(
            host=os.getenv('POSTGRES_HOST', 'localhost'),
            port=int(os.getenv('POSTGRES_PORT', '5432')),
            user=os.getenv('POSTGRES_USER', 'postgres'),
            password=os.getenv('POSTGRES_PASSWORD', ''),
            database=os.getenv('POSTGRES_DB', 'postgres')
        )

        self.query = QueryConfig(
            log_sql=_env_bool('QUERY_LOG_SQL', True),
            log_param_length=int(os.getenv('QUERY_LOG_PARAM_LENGTH', '80'))
        )

        self.transaction = TransactionConfig(
            max_attempts=int(os.getenv('TXN_MAX_ATTEMPTS', '5')),
            retry_base_delay=float(os.getenv('TXN_RETRY_BASE_DELAY', '0.05')),
            backoff_multiplier=float(os.getenv('TXN_BACKOFF_MULTIPLIER', '2.0')),
            isolation_level=os.getenv('TXN_ISOLATION_LEVEL', 'SERIALIZABLE').upper()
        )

        self.logging = LoggingConfig(
            level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            log_file=os.getenv('LOG_FILE') or None,
            log_dir=os.getenv('LOG_DIR', 'logs')
        )

    @property
    def db_host(self) -> str:
        """Get database server hostname."""
        return self.db.host

    @property
    def db_port(self) -> int:
        """Get database server port number."""
        return self.db.port

    @property
    def db_name(self) -> str:
        """Get database name."""
        return self.db.database

    def get_connection_string(self, database: Optional[str] = None) -> str:
        """Get database connection string.

        Example:
            >>> config = Config()
            >>> engine = create_engine(config.get_connection_string())
        """
        return self.db.get_connection_string(database=database)

    def get_connection_params(self, database: Optional[str] = None) -> dict:
        """Get database connection parameters for psycopg2."""
        return self.db.get_connection_params(database=database)


# Global configuration instance
config = Config()
