"""Logging helpers for reflex-filter-grid.

Modules log through ``logging.getLogger(__name__)``; :func:`get_logger`
configures the package root logger once (stderr handler, level and format
from :class:`~reflex_filter_grid.config.LogSettings`).
"""

import logging
import sys
from typing import Any

_ROOT_LOGGER_NAME: str = "reflex_filter_grid"


class _LoggerHolder:
    """Holder for the configured package logger."""

    instance: logging.Logger | None = None


def get_logger(level: str | None = None, fmt: str | None = None) -> logging.Logger:
    """Return the package root logger, configuring it on first use.

    Args:
        level: Optional level override (``"DEBUG"``, ``"INFO"``, ...).
            Defaults to ``LogSettings.level``.
        fmt: Optional format string.  Defaults to ``LogSettings.format``.

    Returns:
        The ``reflex_filter_grid`` logger with a stderr stream handler.
    """
    if _LoggerHolder.instance is None:
        from reflex_filter_grid.config import get_settings

        log_settings = get_settings().log
        logger = logging.getLogger(_ROOT_LOGGER_NAME)
        logger.setLevel(level or log_settings.level)

        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter(fmt or log_settings.format))
            logger.addHandler(handler)

        _LoggerHolder.instance = logger
    elif level is not None:
        _LoggerHolder.instance.setLevel(level)

    return _LoggerHolder.instance


def set_level(level: int | str) -> None:
    """Set the package logging level (``logging.DEBUG`` or ``"DEBUG"``)."""
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    get_logger().setLevel(level)


# Keys whose values never reach log output.
_SENSITIVE_KEYS = frozenset(
    {
        "password",
        "secret",
        "token",
        "access_token",
        "authorization",
        "cookie",
    }
)


def redact_sensitive_data(
    data: dict[str, Any] | list[Any] | str | None,
    max_depth: int = 5,
) -> dict[str, Any] | list[Any] | str | None:
    """Return a copy of *data* with credential-like values replaced.

    Dict keys containing any of the sensitive names (case-insensitive)
    get the value ``"[REDACTED]"``.  Lists and nested dicts are walked
    up to *max_depth* levels.
    """
    if max_depth <= 0:
        return "[MAX_DEPTH]"

    if data is None:
        return None

    if isinstance(data, dict):
        result: dict[str, Any] = {}
        for k, v in data.items():
            key_lower = str(k).lower()
            if any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS):
                result[k] = "[REDACTED]"
            else:
                result[k] = redact_sensitive_data(v, max_depth - 1)
        return result

    if isinstance(data, list):
        return [redact_sensitive_data(item, max_depth - 1) for item in data]

    return data
