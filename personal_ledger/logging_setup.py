"""Logging for the ``personal_ledger`` package.

Library modules only ever call :func:`get_logger`; handlers are owned by the
command-line entry point, which calls :func:`configure_logging` once per
command. The level is picked in this order:

1. an explicit ``level`` argument,
2. ``-v`` (INFO) or ``-vv`` (DEBUG) on the command line,
3. the ``PERSONAL_LEDGER_LOG_LEVEL`` environment variable,
4. WARNING, so routine load/save chatter stays out of normal output.

At DEBUG the records carry a timestamp and the logger name; otherwise only the
level and message are shown, next to what the CLI prints itself.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "personal_ledger"
LEVEL_ENV = "PERSONAL_LEDGER_LOG_LEVEL"
DEFAULT_LEVEL = logging.WARNING

BRIEF_FORMAT = "%(levelname)s: %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _LedgerHandler(logging.StreamHandler):
    """Marker type for the one handler this module installs."""


def _level_from_name(value: str) -> int | None:
    value = value.strip().upper()
    if value.isdigit():
        return int(value)
    numeric = logging.getLevelName(value)
    return numeric if isinstance(numeric, int) else None


def resolve_level(level: int | str | None = None, *, verbose: int = 0) -> int:
    """Return the effective level; unknown names fall through to the next source."""

    if isinstance(level, int):
        return level
    if isinstance(level, str):
        numeric = _level_from_name(level)
        if numeric is not None:
            return numeric
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    numeric = _level_from_name(os.environ.get(LEVEL_ENV, ""))
    return DEFAULT_LEVEL if numeric is None else numeric


def configure_logging(
    level: int | str | None = None,
    *,
    verbose: int = 0,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> int:
    """Install (or replace) the package handler and return the level in use.

    Calling it again swaps the previous handler out, so each command run from
    the interactive shell gets its own ``-v`` setting.
    """

    resolved = resolve_level(level, verbose=verbose)
    logger = logging.getLogger(PACKAGE_LOGGER)
    for h in list(logger.handlers):
        if isinstance(h, (_LedgerHandler, logging.NullHandler)):
            logger.removeHandler(h)

    handler = _LedgerHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or (DEBUG_FORMAT if resolved <= logging.DEBUG else BRIEF_FORMAT)))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    # Records stop here; the root logger belongs to the host.
    logger.propagate = False
    return resolved


def get_logger(name: str) -> logging.Logger:
    """Logger for a package module; silent until :func:`configure_logging` runs."""

    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)
