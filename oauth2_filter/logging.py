"""Logging setup for the filter and its host application."""

import logging
import os

from pythonjsonlogger import jsonlogger


def _level() -> int:
    level = os.environ.get('LOGLEVEL', 20)
    try:
        return int(level)
    except ValueError:
        return logging.getLevelName(str(level).upper())


def getLogger(name: str) -> logging.Logger:
    """Get a logger with the configured ``LOGLEVEL``."""
    logger = logging.getLogger(name)
    logger.setLevel(_level())
    return logger


def setup_logger() -> None:
    """Install a JSON formatter on the root logger."""
    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s',
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    )
    handler.setFormatter(formatter)
    root = logging.getLogger()
    for existing in root.handlers:
        if isinstance(existing.formatter, jsonlogger.JsonFormatter):
            return
    root.addHandler(handler)
    root.setLevel(_level())
