"""Package logging for ``audit_log_analytics``.

Library modules obtain loggers with :func:`get_logger` and never attach
handlers. Entry points (the CLI, or a host application) call
:func:`configure_logging` once; until then the package logger carries only a
``NullHandler`` so embedding applications stay silent.

The level comes from the explicit argument, else from
``AUDIT_LOG_ANALYTICS_LOG_LEVEL``, else ``INFO``. Diagnostics go to stderr by
default so that report and JSON output on stdout stay machine-readable.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "audit_log_analytics"
_LEVEL_ENV_VAR = "AUDIT_LOG_ANALYTICS_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    """Map an int, a level name, a numeric string, or ``None`` to a level.

    Unrecognised names fall back to ``INFO`` rather than failing startup.
    """

    if level is None:
        level = os.getenv(_LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    text = level.strip().upper()
    if text.isdigit():
        return int(text)
    return logging.getLevelNamesMapping().get(text, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach one ``StreamHandler`` to the package logger; later calls are no-ops."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for handler in [h for h in pkg_logger.handlers if isinstance(h, logging.NullHandler)]:
        pkg_logger.removeHandler(handler)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(resolved)
    pkg_logger.propagate = False

    _CONFIGURED = True
    pkg_logger.debug("logging configured at %s", logging.getLevelName(resolved))


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, guarding the package logger first."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
