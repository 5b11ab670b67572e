"""Logging setup for the ledger API server.

The root logger writes to stdout and, when a path is given, to a log file. The
level comes from the LOG_LEVEL env var, falling back to the configured level.
At DEBUG every balance and water allocation computed is traced; settlement
data-quality warnings are emitted at WARNING.
"""

import logging
import os
import sys
from pathlib import Path

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers kept at WARNING unless the server itself runs at DEBUG
CHATTY_LIBRARY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def get_log_level(default: str = "INFO") -> int:
    """Resolve the level from LOG_LEVEL, then ``default``; unknown names mean INFO."""
    level_str = os.getenv("LOG_LEVEL", default).upper()
    return LOG_LEVEL_MAP.get(level_str, logging.INFO)


def _make_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_server_logging(log_file: str | None = "logs/server.log", level: str = "INFO") -> None:
    """Configure the root logger for the API server.

    Args:
        log_file: Log file path; its directory is created if missing. None
            logs to stdout only.
        level: Level name used when LOG_LEVEL is not set

    Calling it again replaces the handlers installed by a previous call.
    """
    log_level = get_log_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    root_logger.addHandler(_make_handler(logging.StreamHandler(sys.stdout), log_level))
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(_make_handler(logging.FileHandler(log_path), log_level))

    library_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in CHATTY_LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(max(library_level, log_level))
