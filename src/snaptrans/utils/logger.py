"""
Logging setup.

Every module logs through a child of the `snaptrans` logger, which writes to a
rotating file in the user log directory and, in development, to stderr.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from platformdirs import user_log_path

ROOT_LOGGER_NAME = "snaptrans"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

_logger_instance: Optional[logging.Logger] = None


def get_log_dir() -> Path:
    return user_log_path(ROOT_LOGGER_NAME, ensure_exists=True)


def _configure(root_logger: logging.Logger) -> None:
    from ..core.settings.config import LOG_TO_CONSOLE, get_log_level

    level = get_log_level()
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers = [
        RotatingFileHandler(
            get_log_dir() / "app.log",
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUPS,
            encoding="utf-8",
        )
    ]
    if LOG_TO_CONSOLE:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    root_logger.setLevel(level)
    root_logger.propagate = False


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Return a logger, configuring the application handlers on first use."""
    global _logger_instance

    if _logger_instance is None:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        if not root_logger.handlers:
            _configure(root_logger)
        _logger_instance = root_logger

    if name == ROOT_LOGGER_NAME:
        return _logger_instance

    return logging.getLogger(name)


def shutdown_logging() -> None:
    """Close all handlers so the log file is released."""
    global _logger_instance
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    _logger_instance = None
