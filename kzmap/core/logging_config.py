"""Unified logging configuration for processes that embed kzmap.

kzmap is a library and never attaches handlers itself: its modules only call
``logging.getLogger(__name__)`` and leave output to the host. The host
process (a self-play worker, a trainer, a test harness) calls
``setup_logging`` once at startup to route the ``kzmap`` logger hierarchy
(config initialisation at INFO, policy fallbacks at WARNING, rejected
mapping calls at DEBUG) to stderr and/or a file.

Usage:
    from kzmap.core.logging_config import setup_logging

    logger = setup_logging("kzmap", level="DEBUG", format_style="compact")
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
COMPACT_FORMAT = "%(levelname)s %(name)s: %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(filename)s:%(lineno)d - %(message)s"
)
STRUCTURED_FORMAT = (
    '{"time": "%(asctime)s", "logger": "%(name)s", '
    '"level": "%(levelname)s", "message": "%(message)s"}'
)

_FORMATS = {
    "default": DEFAULT_FORMAT,
    "compact": COMPACT_FORMAT,
    "detailed": DETAILED_FORMAT,
    "structured": STRUCTURED_FORMAT,
}


def setup_logging(
    name: str = "kzmap",
    level: Union[int, str] = logging.INFO,
    format_style: str = "default",
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    propagate: bool = False,
) -> logging.Logger:
    """Configure and return a named logger.

    Calling this twice for the same name does not stack duplicate handlers.

    Args:
        name: Logger name, usually the top-level package.
        level: Logging level as int or name ("DEBUG", "INFO", ...).
        format_style: One of default/compact/detailed/structured. Unknown
            styles fall back to default.
        console: Attach a stderr stream handler.
        log_file: Optional path for an additional file handler.
        propagate: Whether records also propagate to the root logger.
    """
    logger = logging.getLogger(name)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)
    logger.propagate = propagate

    formatter = logging.Formatter(_FORMATS.get(format_style, DEFAULT_FORMAT))

    if console and not any(
        type(h) is logging.StreamHandler for h in logger.handlers
    ):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        already = any(
            isinstance(h, logging.FileHandler)
            and Path(h.baseFilename) == log_path.absolute()
            for h in logger.handlers
        )
        if not already:
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` without touching its handlers."""
    return logging.getLogger(name)


class LogContext:
    """Temporarily change a logger's level.

    with LogContext(logging.getLogger("kzmap.mapping"), logging.DEBUG):
        mapper.encode(state)
    """

    def __init__(self, logger: logging.Logger, level: int):
        self.logger = logger
        self.level = level
        self._previous: Optional[int] = None

    def __enter__(self) -> logging.Logger:
        self._previous = self.logger.level
        self.logger.setLevel(self.level)
        return self.logger

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._previous is not None:
            self.logger.setLevel(self._previous)
