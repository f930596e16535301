"""
==============================================
Core infrastructure package for the toolkit.
==============================================

This package provides configuration management and logging setup used by
the execution helpers in utils/.

Modules:
    config: Configuration management from environment variables
    logger: Logging setup and statement formatting

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Connecting to {config.db_host}")
"""

__version__ = "0.1.0"
__all__ = ['get_logger', 'setup_logging', 'format_query_for_log', 'config', 'Config']

from core.config import Config, config
from core.logger import format_query_for_log, get_logger, setup_logging
