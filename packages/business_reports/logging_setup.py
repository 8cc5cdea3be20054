"""Centralized logging configuration for the ``business_reports`` package.

Entrypoints (the CLI callback, or a host application) call
:func:`configure_logging` once; library modules only ever call
``get_logger("business_reports.<module>")`` and never attach handlers of their
own. Until configuration happens the package logger carries a
``NullHandler`` so importing the library stays silent.

The level comes from the explicit argument, else ``BUSINESS_REPORTS_LOG_LEVEL``,
else ``WARNING``: INFO records (fetch counts, written files) are opt-in so they
do not interleave with the CLI's tables.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "business_reports"
_LEVEL_ENV = "BUSINESS_REPORTS_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


class _CurrentStderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is at emit time."""

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr

    @stream.setter
    def stream(self, value) -> None:
        pass


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        level = os.getenv(_LEVEL_ENV)
        if not level:
            return logging.WARNING
    # Numeric strings or standard level names (INFO/DEBUG/etc.).
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else logging.WARNING


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach the package's single ``StreamHandler``.

    Parameters
    ----------
    level:
        ``int`` or level name (``"DEBUG"``). ``None`` falls back to
        ``BUSINESS_REPORTS_LOG_LEVEL`` and then ``WARNING``.
    fmt:
        Format string for the handler; defaults to
        ``"%(asctime)s %(name)s %(levelname)s %(message)s"``.
    stream:
        Output stream. When omitted records go to the current ``sys.stderr``,
        looked up per record so redirected streams are honored.

    Notes
    -----
    Repeated calls never add a second handler. They only apply the newly
    resolved level, so a process that runs several commands (tests using
    ``CliRunner``) honors each command's ``--log-level``.
    """

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    resolved = _parse_level(level)

    if _handler is None:
        for h in list(logger.handlers):
            if isinstance(h, logging.NullHandler):
                logger.removeHandler(h)
        _handler = (
            logging.StreamHandler(stream) if stream is not None else _CurrentStderrHandler()
        )
        _handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
        logger.addHandler(_handler)
        # Records stop at the package logger; the root logger never sees them.
        logger.propagate = False
    elif fmt:
        _handler.setFormatter(logging.Formatter(fmt))

    _handler.setLevel(resolved)
    logger.setLevel(resolved)


def get_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger; keeps the package silent until configured."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
