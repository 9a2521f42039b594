#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
from .colored_logging import setup_colored_logging


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        setup_colored_logging(level=logging.INFO)
    return logger


def level_from_name(name: str) -> int:
    """Map 'DEBUG'/'info'/... to a logging level, defaulting to INFO."""
    return getattr(logging, str(name or "INFO").upper(), logging.INFO)
