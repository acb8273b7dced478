"""Logging setup for spotify-sync.

Records go to stdout in a readable one-line format. Hosts that want
structured logs pass a directory and also get ``spotify_sync.log``: one JSON
object per record, rotated at 10MB with 5 backups. Extra fields given to
``log_with_context`` (``account_id``, ``endpoint``, ``event_type``, ...)
become top-level JSON keys.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

LOG_FILE_NAME = "spotify_sync.log"

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s %(filename)s %(lineno)d"

# Third-party loggers that are only interesting when something breaks
QUIET_LOGGERS = ("httpx", "httpcore")


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.setLevel(level)
    return handler


def _json_file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(jsonlogger.JsonFormatter(JSON_FORMAT, timestamp=True))
    # The file keeps debug records (HTTP hooks, state changes) regardless of console level
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(log_level: str = "INFO", log_dir: Path | None = None) -> logging.Logger:
    """Install the spotify-sync handlers on the root logger.

    Existing root handlers are replaced, so calling this twice is safe.

    Args:
        log_level: Level name for the console (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the JSON log file; console only when None

    Returns:
        The configured root logger
    """
    level = logging.getLevelName(log_level.upper())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(_console_handler(level))

    if log_dir is None:
        root_logger.setLevel(level)
    else:
        root_logger.addHandler(_json_file_handler(log_dir))
        root_logger.setLevel(min(level, logging.DEBUG))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Module logger; call as ``get_logger(__name__)``."""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **extra_fields: Any,
) -> None:
    """Log ``message`` at ``level`` with structured context fields.

    Args:
        logger: Logger instance
        level: Level name (debug, info, warning, error, critical)
        message: Log message
        **extra_fields: Context attached to the record, e.g. account_id,
            endpoint, event_type
    """
    getattr(logger, level.lower())(message, extra=extra_fields)
