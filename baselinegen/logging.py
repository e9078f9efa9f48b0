"""Logger hierarchy shared by the CLI process and its worker processes.

Everything logs under ``baselinegen.<component>``. The CLI configures the
hierarchy once; worker processes started by the dispatcher re-apply the
parent's level through :func:`configure_worker_logging` because a spawned
interpreter starts without any handlers.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List

_LOGGER_NAME = "baselinegen"
_CONSOLE_FORMAT = "[baselinegen] %(levelname)s %(message)s"
_WORKER_FORMAT = "[baselinegen:%(processName)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(processName)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a component logger under the baselinegen hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def current_level() -> int:
    """Level the hierarchy logs at, handed to worker processes."""
    return logging.getLogger(_LOGGER_NAME).getEffectiveLevel()


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Log to stderr at INFO (DEBUG when verbose) and optionally to ``log_file``."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers: List[logging.Handler] = [_handler(logging.StreamHandler(), level, _CONSOLE_FORMAT)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), level, _FILE_FORMAT)
        )
    return _install(level, handlers)


def configure_worker_logging(level: int) -> logging.Logger:
    """Process pool initializer: mirror the parent's level on stderr."""
    return _install(level, [_handler(logging.StreamHandler(sys.stderr), level, _WORKER_FORMAT)])


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _install(level: int, handlers: List[logging.Handler]) -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    # Handlers inherited through fork or left by an earlier run in this process.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "configure_worker_logging", "current_level", "get_logger"]
