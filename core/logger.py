"""
=============================================
Centralized logging for the query toolkit.
=============================================

Provides:
- get_logger() for module loggers
- setup_logging() to configure console and file output once at startup
- ColoredFormatter for readable terminal output
- format_query_for_log() to render a compiled statement for DEBUG logs

Nothing is configured on import: applications call setup_logging() (or
configure the logging module themselves).

Example:
    >>> from core.logger import get_logger, setup_logging
    >>>
    >>> setup_logging(log_level='DEBUG', log_file='queries.log')
    >>> logger = get_logger(__name__)
    >>> logger.debug(format_query_for_log(compiled))
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from core.config import config

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Formatter adding ANSI colors to the level name on console output.

    The record itself is left untouched so other handlers (e.g. the file
    handler) still see the plain level name.

    Attributes:
        COLORS: Dict mapping log levels to ANSI color codes
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ of calling module)
        level: Optional logging level override (DEBUG/INFO/WARNING/ERROR/CRITICAL)

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if level:
        logger.setLevel(getattr(logging, level.upper()))

    return logger


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console_output: bool = True,
    use_colors: bool = True
) -> None:
    """Configure the root logger.

    Arguments left as None fall back to the LOG_LEVEL / LOG_FILE / LOG_DIR
    settings in core.config. Existing root handlers are replaced, so calling
    this twice does not duplicate output.

    Args:
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        log_file: Optional log file name (e.g. 'queries.log')
        log_dir: Directory for log_file
        console_output: If True, log to stdout
        use_colors: If True, color the console level names

    Raises:
        ValueError: If log_level is not a known level name
    """
    level_name = (log_level or config.logging.level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level '{level_name}'")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        formatter_class = ColoredFormatter if use_colors else logging.Formatter
        console_handler.setFormatter(formatter_class(DEFAULT_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(console_handler)

    log_file = log_file or config.logging.log_file
    if log_file:
        log_path = Path(log_dir or config.logging.log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path / log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)


def format_query_for_log(text: str, params: Sequence[Any], max_param_length: int = 80) -> str:
    """One-line description of a statement for DEBUG logs.

    Whitespace runs are collapsed and long parameter values are shortened.

    Example:
        >>> format_query_for_log('SELECT *\\n  FROM users WHERE id = %s', [1])
        'SELECT * FROM users WHERE id = %s -- params: [1]'
    """
    statement = ' '.join(text.split())
    shown = []
    for value in params:
        rendered = repr(value)
        if len(rendered) > max_param_length:
            rendered = rendered[:max_param_length - 3] + '...'
        shown.append(rendered)
    return f"{statement} -- params: [{', '.join(shown)}]"
