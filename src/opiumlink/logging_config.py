"""
Logging configuration for opiumlink.

Console logging on stderr, with an optional rotating log file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_MAX_BYTES = 1048576  # 1MB
LOG_FILE_BACKUPS = 3


def setup_logging(level: str = "WARNING", log_file: str | None = None) -> logging.Logger:
    """
    Set up the opiumlink package logger.

    Args:
        level: Console logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Also log everything down to DEBUG to this file

    Returns:
        Configured package logger
    """
    logger = logging.getLogger("opiumlink")
    console_level = getattr(logging, level.upper())
    logger.setLevel(logging.DEBUG if log_file else console_level)
    logger.handlers.clear()

    # stderr so status output on stdout stays clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    ))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s | %(levelname)-8s | %(name)-26s | %(funcName)-16s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def configure_logging(debug: bool = False, log_file: str | None = None) -> None:
    """Logging setup used by the CLI: warnings only unless --debug."""
    setup_logging(level="DEBUG" if debug else "WARNING", log_file=log_file)
