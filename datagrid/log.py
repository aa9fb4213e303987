"""Logging utilities for datagrid.

Non-fatal conditions (corrupt persisted settings, a cell that fails to
render, a store that refuses a write) are logged here instead of raised.
"""

from __future__ import annotations

import logging
import sys


class _LoggerHolder:
    """Holder for the global logger instance."""

    instance: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Return the shared "datagrid" logger, creating its stderr handler once.

    The logger keeps propagating to the root logger so applications can
    route datagrid records through their own handlers.
    """
    if _LoggerHolder.instance is None:
        logger = logging.getLogger("datagrid")
        logger.setLevel(logging.WARNING)

        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(logging.DEBUG)
            formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        _LoggerHolder.instance = logger

    return _LoggerHolder.instance


def debug(msg: str) -> None:
    get_logger().debug(msg)


def info(msg: str) -> None:
    get_logger().info(msg)


def warn(msg: str) -> None:
    """Recovered problems such as unreadable settings or skipped writes."""
    get_logger().warning(msg)


def error(msg: str) -> None:
    get_logger().error(msg)


def exception(msg: str) -> None:
    """Log an exception with full traceback.

    Call this from within an except block.

    Parameters
    ----------
    msg : str
        The error message to log alongside the traceback.
    """
    get_logger().exception(msg)


def set_level(level: int | str) -> None:
    """Set the logging level.

    Parameters
    ----------
    level : int or str
        The logging level (e.g., logging.DEBUG, "DEBUG").
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    get_logger().setLevel(level)


def set_format(fmt: str) -> None:
    """Replace the format string of the handlers owned by the datagrid logger."""
    for handler in get_logger().handlers:
        handler.setFormatter(logging.Formatter(fmt))


def enable_debug() -> None:
    """Enable verbose logging of recomputes, merges and export steps."""
    set_level(logging.DEBUG)


def log_callback_error(event_type: str, table_id: str, exc: BaseException) -> None:
    """Log a failing table event handler with its traceback.

    Parameters
    ----------
    event_type : str
        The event type that triggered the handler.
    table_id : str
        The table the event was raised for.
    exc : BaseException
        The exception that was raised.
    """
    get_logger().exception(f"Handler error for '{event_type}' on table '{table_id}': {exc}")
