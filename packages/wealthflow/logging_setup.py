"""Logging for the ``wealthflow`` package.

Modules log through ``get_logger(__name__)`` and phrase every record as
``"<module>:<event> key=value ..."`` (``store:loaded path=... transactions=3``)
so output stays greppable. Nothing is printed until the CLI calls
:func:`configure_logging`; imported as a library the package is silent.

The level comes from the ``--log-level`` option, else ``WEALTHFLOW_LOG_LEVEL``,
else WARNING, which keeps command output free of engine chatter.
"""

from __future__ import annotations

import logging
import os
from typing import IO

PACKAGE_LOGGER = "wealthflow"
LEVEL_ENV = "WEALTHFLOW_LOG_LEVEL"
DEFAULT_FORMAT = "%(levelname)s %(name)s %(message)s"

_handler: logging.Handler | None = None


def resolve_level(value: int | str | None) -> int:
    """Turn a level name, number or ``None`` into a numeric level.

    ``None`` and unrecognized names fall through to ``WEALTHFLOW_LOG_LEVEL``
    and then to WARNING.
    """

    if isinstance(value, int):
        return value
    name = (value or "").strip().upper()
    if name.isdigit():
        return int(name)
    if name in logging.getLevelNamesMapping():
        return logging.getLevelNamesMapping()[name]
    env_val = os.getenv(LEVEL_ENV, "").strip()
    if env_val and env_val.upper() != name:
        return resolve_level(env_val)
    return logging.WARNING


def _package_logger() -> logging.Logger:
    return logging.getLogger(PACKAGE_LOGGER)


def configure_logging(
    level: int | str | None = None, *, stream: IO[str] | None = None
) -> logging.Handler:
    """Send ``wealthflow.*`` records to ``stream`` (stderr by default).

    Repeated calls keep the first handler and only adjust the level, so the
    CLI callback can run more than once in a process.
    """

    global _handler
    resolved = resolve_level(level)
    logger = _package_logger()
    if _handler is None:
        for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
            logger.removeHandler(h)
        _handler = logging.StreamHandler(stream)
        _handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(_handler)
        logger.propagate = False
    _handler.setLevel(resolved)
    logger.setLevel(resolved)
    return _handler


def reset_logging() -> None:
    """Undo :func:`configure_logging` and let records propagate again."""

    global _handler
    logger = _package_logger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _handler = None


def get_logger(name: str) -> logging.Logger:
    """Logger for a ``wealthflow`` module; silent until logging is configured."""

    logger = _package_logger()
    if _handler is None and not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging", "resolve_level"]
