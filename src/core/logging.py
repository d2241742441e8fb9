"""Logging configuration for the solver toolkit.

Loggers live under the ``descent.`` namespace, write to stderr and default
to WARNING so that library use stays quiet unless asked otherwise.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

__all__ = ["get_logger", "set_log_level", "configure_logging"]

_ROOT = "descent"
_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_default_level = logging.WARNING
_loggers: dict[str, logging.Logger] = {}


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def get_logger(name: str | None = None) -> logging.Logger:
    """Get or create a logger for the given module name.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.
            If None, the package root logger is returned.

    Returns:
        Cached logger with a single stderr handler.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("line search exhausted")
    """
    if name is None:
        logger_name = _ROOT
    elif name == _ROOT or name.startswith(f"{_ROOT}."):
        logger_name = name
    else:
        logger_name = f"{_ROOT}.{name}"

    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_default_level)
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(_default_level)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the level of every toolkit logger, including ones created later.

    Args:
        level: A ``logging`` level or its name (``"DEBUG"``, ``"INFO"``, ...).
    """
    global _default_level
    level = _coerce_level(level)
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
    _default_level = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Replace the handlers of all toolkit loggers.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, uses the default.
        stream: Output stream (default: sys.stderr).
    """
    global _default_level
    level = _coerce_level(level)
    formatter = logging.Formatter(format_string or _FORMAT)
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    _default_level = level
