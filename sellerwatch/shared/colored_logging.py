#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Console logging for SellerWatch runs.

Level names are colored only when the target stream is a terminal and
NO_COLOR is unset, so redirected output and CI logs stay plain. Chatty HTTP
transport loggers are held at WARNING unless the run itself is at DEBUG.
"""
from __future__ import annotations

import logging
import os
import sys
from typing import IO, Iterable, Optional

DEFAULT_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(funcName)s:%(lineno)d] - %(message)s'
DEFAULT_DATEFMT = '%Y-%m-%d %H:%M:%S'

LEVEL_COLORS = {
    logging.DEBUG: '\033[36m',
    logging.INFO: '\033[32m',
    logging.WARNING: '\033[33m',
    logging.ERROR: '\033[31m',
    logging.CRITICAL: '\033[1;31m',
}
RESET = '\033[0m'

# requests logs every connection through urllib3
TRANSPORT_LOGGERS = ("urllib3", "requests")


def stream_supports_color(stream: Optional[IO]) -> bool:
    if os.environ.get('NO_COLOR'):
        return False
    isatty = getattr(stream, 'isatty', None)
    return bool(isatty and isatty())


class ColoredFormatter(logging.Formatter):
    """Colors the level name by numeric level; the record itself is left untouched."""

    def __init__(self, fmt: str = DEFAULT_FORMAT, datefmt: Optional[str] = DEFAULT_DATEFMT,
                 stream: Optional[IO] = None):
        super().__init__(fmt, datefmt)
        self.use_colors = stream_supports_color(stream if stream is not None else sys.stderr)

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        if color is None:
            return super().formatMessage(record)
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{RESET}"
        return super().formatMessage(colored)


def setup_colored_logging(level: int = logging.INFO, fmt: str = DEFAULT_FORMAT,
                          datefmt: Optional[str] = DEFAULT_DATEFMT, stream: Optional[IO] = None,
                          transport_loggers: Iterable[str] = TRANSPORT_LOGGERS) -> logging.Handler:
    """
    Install a single colored console handler on the root logger.

    Args:
        level: Root logging level (e.g. logging.INFO)
        fmt: Format string for log messages
        datefmt: Format string for timestamps
        stream: Target stream (stderr when None)
        transport_loggers: Loggers kept at WARNING unless level is DEBUG

    Returns:
        The installed handler
    """
    target = stream if stream is not None else sys.stderr
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(target)
    handler.setFormatter(ColoredFormatter(fmt=fmt, datefmt=datefmt, stream=target))
    root.setLevel(level)
    root.addHandler(handler)

    transport_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in transport_loggers:
        logging.getLogger(name).setLevel(transport_level)
    return handler
