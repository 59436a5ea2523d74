"""Logging configuration for the ``fintrack`` package.

Library modules call ``get_logger("fintrack.<module>")`` and never attach
handlers themselves. The CLI calls ``configure_logging`` once at start-up,
which attaches a single ``StreamHandler`` to the package logger.
"""

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "fintrack"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        level = os.getenv("FINTRACK_LOG_LEVEL")
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    return logging.WARNING


def configure_logging(level: int | str | None = None, *, stream: IO[str] = sys.stderr) -> None:
    """Attach one handler to the package logger. Later calls only adjust the level.

    ``FINTRACK_LOG_LEVEL`` takes precedence over ``level`` when set.
    """
    global _CONFIGURED
    env_level = os.getenv("FINTRACK_LOG_LEVEL")
    resolved = _parse_level(env_level if env_level else level)

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    logger.setLevel(resolved)
    if _CONFIGURED:
        return

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    # Avoid double emission via the root logger.
    logger.propagate = False
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
