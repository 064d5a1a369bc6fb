"""Centralised logging configuration for PocketLedger.

Engine modules acquire loggers through :func:`get_logger` using names under the
``"pocketledger"`` namespace (``"pocketledger.analytics.recurring"`` and so on)
and never attach handlers themselves. Host applications call
:func:`configure_logging` once at start-up.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

from config.settings import get_settings

__all__ = ["LOGGER_NAMESPACE", "configure_logging", "get_logger"]

LOGGER_NAMESPACE = "pocketledger"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
        raise ValueError(f"Unknown log level: {level!r}")
    return _parse_level(get_settings().log_level)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> logging.Logger:
    """Attach a single ``StreamHandler`` to the namespace logger.

    Parameters
    ----------
    level:
        ``int`` or level name. ``None`` falls back to ``Settings.log_level``
        (``POCKETLEDGER_LOG_LEVEL``, ``INFO`` by default).
    fmt:
        Optional format string for the handler.
    stream:
        Output stream, ``sys.stderr`` by default.

    Returns
    -------
    logging.Logger
        The configured namespace logger. Repeated calls are no-ops.
    """

    global _CONFIGURED
    logger = logging.getLogger(LOGGER_NAMESPACE)
    if _CONFIGURED:
        return logger

    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger, keeping the namespace silent until configured."""

    root = logging.getLogger(LOGGER_NAMESPACE)
    if not _CONFIGURED and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)
