"""
Logging setup for the converter web API.

The root logger is configured once, on import, from the environment:

- ``LOG_LEVEL`` (or ``LOGLEVEL``): level name, INFO by default and WARNING
  under pytest
- ``LOG_FORMAT``: ``standard``, ``dev`` or ``json``
- ``LOG_TO_FILE`` / ``LOG_FILE``: add a rotating file handler
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Optional

LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'WARN': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}

LOG_FORMATS = {
    'standard': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    'dev': '%(asctime)s [%(levelname)8s] %(name)s:%(lineno)d - %(message)s',
    'json': '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
}

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_FILE_BACKUPS = 5


class LogConfig:
    """Logging settings read from the environment."""

    @staticmethod
    def get_log_level() -> int:
        level_name = os.getenv('LOG_LEVEL', os.getenv('LOGLEVEL'))
        if level_name:
            return LOG_LEVELS.get(level_name.strip().upper(), logging.INFO)

        # Quiet test runs unless a level is set explicitly
        if 'pytest' in sys.modules or 'PYTEST_CURRENT_TEST' in os.environ:
            return logging.WARNING
        return logging.INFO

    @staticmethod
    def get_log_format() -> str:
        format_name = os.getenv('LOG_FORMAT', 'standard').strip().lower()
        if format_name == 'development':
            format_name = 'dev'
        return LOG_FORMATS.get(format_name, LOG_FORMATS['standard'])

    @staticmethod
    def get_log_file() -> Optional[Path]:
        """Log file path, or None unless LOG_TO_FILE is on and LOG_FILE is set."""
        if os.getenv('LOG_TO_FILE', 'false').lower() not in ('true', '1', 'yes'):
            return None
        log_file = os.getenv('LOG_FILE')
        return Path(log_file) if log_file else None


_configured = False


def configure_logging(force: bool = False) -> None:
    """Install the stdout (and optional file) handler on the root logger."""
    global _configured
    if _configured and not force:
        return

    level = LogConfig.get_log_level()
    formatter = logging.Formatter(LogConfig.get_log_format())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = LogConfig.get_log_file()
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
        ))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger with the service configuration applied."""
    configure_logging()
    return logging.getLogger(name)


def log_performance(logger: logging.Logger, level: int = logging.INFO):
    """Decorator logging the start, duration and failure of a call."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = datetime.now()
            logger.log(level, f"Starting {func.__name__}")

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = (datetime.now() - start_time).total_seconds()
                logger.log(level, f"Failed {func.__name__} after {duration:.3f}s: {e}")
                raise

            duration = (datetime.now() - start_time).total_seconds()
            logger.log(level, f"Completed {func.__name__} in {duration:.3f}s")
            return result
        return wrapper
    return decorator


configure_logging()
