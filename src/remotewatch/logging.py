"""Logging configuration for remotewatch.

Two levels are added to the standard ones: VERBOSE (15) for one line per
broadcast and TRACE (5) for every websocket frame. ``-v`` on the command
line selects verbose, ``-vv`` trace.

Output goes to the file named by ``logging.file`` in the config or by
REMOTEWATCH_LOG, and to stderr otherwise.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from remotewatch.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("remotewatch")

LOG_ENV = "REMOTEWATCH_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_LEVEL_NAMES = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "verbose": VERBOSE,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

# logging.verbose / -v count, quietest first
_VERBOSITY = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

_handler: logging.Handler | None = None


class _LowercaseLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Pick the effective log level; verbose (int) wins over level (str)."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = max(0, min(config.verbose, len(_VERBOSITY) - 1))
        return _VERBOSITY[index]
    if config.level:
        return _LEVEL_NAMES.get(config.level.lower(), logging.INFO)
    return logging.INFO


def _log_path(config: LoggingConfig | None) -> str | None:
    path = (config.file if config else None) or os.environ.get(LOG_ENV)
    return os.path.expanduser(path) if path else None


def _build_handler(path: str | None) -> logging.Handler:
    if path:
        try:
            return logging.FileHandler(path, mode="a", encoding="utf-8")
        except OSError as e:
            print(f"[remotewatch] Failed to open log file: {e}", file=sys.stderr)
    return logging.StreamHandler(sys.stderr)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Attach a handler to the package logger.

    Only the first call installs a handler; later calls just adjust the level.
    """
    global _handler

    level = resolve_level(config)
    logger.setLevel(level)
    if _handler is not None:
        _handler.setLevel(level)
        return

    handler = _build_handler(_log_path(config))
    handler.setLevel(level)
    handler.setFormatter(_LowercaseLevelFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    _handler = handler


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or its child called name."""
    return logger.getChild(name) if name else logger
