"""Logging helpers shared by every docintel module.

Modules declare ``LOGGER = get_logger(__name__)`` and pass structured context
through ``extra={...}``.
"""

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "docintel"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Optional[str]) -> int:
    return getattr(logging, (level or "INFO").upper(), logging.INFO)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger writing to stdout.

    Args:
        name: Logger name, usually the calling module's ``__name__``
        level: Optional level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        logging.Logger: Logger with a single stream handler attached
    """
    logger = logging.getLogger(name)
    numeric_level = _resolve_level(level)
    logger.setLevel(numeric_level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(numeric_level)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger


def set_package_level(level: str) -> int:
    """Apply ``level`` to every logger created under the docintel namespace.

    Returns:
        int: Number of loggers updated
    """
    numeric_level = _resolve_level(level)
    updated = 0
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger):
            continue
        if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
            continue
        logger.setLevel(numeric_level)
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
        updated += 1
    return updated
