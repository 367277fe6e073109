"""Console logging setup for the notifymail CLI.

Library modules only create loggers; handlers are installed here, once,
by the entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO, Union


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s %(funcName)s():%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _ColoredFormatter(logging.Formatter):
    """Color the level name; used only when the stream is a terminal."""

    _COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    _RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelname)
        if color:
            # Copy so other handlers still see the plain level name
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{self._RESET}"
        return super().format(record)


def setup_logging(level: Union[int, str] = logging.INFO, stream: TextIO | None = None) -> None:
    """Replace the root logger's handlers with one writing to *stream* (stderr by default)."""
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    stream = stream or sys.stderr

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    formatter_cls = _ColoredFormatter if stream.isatty() else logging.Formatter
    handler.setFormatter(formatter_cls(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(handler)
