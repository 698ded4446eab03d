"""
Logging setup for DOCX Converter.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed by applications through :func:`configure_logging`.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"


def _level_value(level: str) -> int:
    if not isinstance(level, str) or level.upper() not in _LEVELS:
        raise ValueError(f"Invalid log level: {level}")
    return getattr(logging, level.upper())


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance for module.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    if not name or not isinstance(name, str):
        raise ValueError("Logger name must be a non-empty string")
    return logging.getLogger(name)


def configure_logging(
    level: str = "INFO",
    use_rich: bool = True,
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Configure logging for the ``docx_converter`` logger tree.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_rich: Render console output through rich's ``RichHandler``
        log_file: Optional log file path (rotated)
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup files to keep
        console: Optional rich console to write to

    Returns:
        The configured package logger
    """
    value = _level_value(level)
    logger = logging.getLogger("docx_converter")
    logger.setLevel(value)
    logger.handlers.clear()

    if use_rich:
        handler: logging.Handler = RichHandler(
            console=console or Console(stderr=True),
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    handler.setLevel(value)
    logger.addHandler(handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        file_handler = RotatingFileHandler(log_file, maxBytes=max_file_size, backupCount=backup_count)
        file_handler.setLevel(value)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def set_log_level(level: str) -> None:
    """
    Set log level on the package logger and its handlers.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    value = _level_value(level)
    logger = logging.getLogger("docx_converter")
    logger.setLevel(value)
    for handler in logger.handlers:
        handler.setLevel(value)
