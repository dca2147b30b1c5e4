"""Logging for the ``ledger_sync`` package.

Everything logs under the package root logger ``"ledger_sync"``. Library
modules obtain a child logger with ``get_logger(__name__)`` and never attach
handlers; the parser, balance engine and zipper only emit DEBUG records.
Entrypoints (the CLI) call ``configure_logging()`` once at startup, which
attaches a single stream handler whose level comes from the argument, the
``LEDGER_SYNC_LOG_LEVEL`` environment variable, or ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "ledger_sync"
LEVEL_ENV = "LEDGER_SYNC_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Set on the handler configure_logging() installs, so repeat calls are no-ops.
_HANDLER_MARK = "_ledger_sync_handler"


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or ``$LEDGER_SYNC_LOG_LEVEL`` when ``None``) into a number.

    Accepts ints, numeric strings and level names in any case. Anything
    unrecognised falls back to ``logging.INFO``.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV)
        if not level:
            return logging.INFO
    if isinstance(level, int):
        return level

    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def _installed(logger: logging.Logger) -> logging.Handler | None:
    for h in logger.handlers:
        if getattr(h, _HANDLER_MARK, False):
            return h
    return None


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach the package's stream handler (once) and return the root logger.

    Parameters
    ----------
    level:
        ``int`` or level name; see :func:`resolve_level`.
    fmt:
        Record format, ``DEFAULT_FORMAT`` when omitted.
    stream:
        Destination for records, ``sys.stderr`` when omitted.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    if _installed(logger) is not None:
        return logger

    # Drop the NullHandler placeholder get_logger() may have added.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    setattr(handler, _HANDLER_MARK, True)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, silencing the package when unconfigured."""

    root = logging.getLogger(PACKAGE_LOGGER)
    if not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["DEFAULT_FORMAT", "LEVEL_ENV", "configure_logging", "get_logger", "resolve_level"]
