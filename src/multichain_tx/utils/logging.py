"""
Structured logging for the multichain transaction engine.

Thin layer over the standard library ``logging`` module:

- get_logger(): namespaced module loggers
- configure_logging(): opt-in handler setup for applications
- set_level(), disable_logging(), enable_debug(): runtime switches
- LogContext: attach contextual fields (transaction id, hash, ...) to
  every record emitted inside a ``with`` block

The library never installs handlers on import; a NullHandler is attached
to the package root so unconfigured applications stay silent.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from typing import Any, Dict, Optional, TextIO, Union

ROOT_LOGGER_NAME = "multichain_tx"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s%(context)s"

_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "multichain_tx_log_context", default={}
)

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


class _ContextFilter(logging.Filter):
    """Renders the active LogContext fields into ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        fields = _context.get()
        record.context = (
            " " + " ".join(f"{k}={v}" for k, v in fields.items()) if fields else ""
        )
        return True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the package namespace.

    Args:
        name: Usually ``__name__``. Names outside the package are nested
            under it.

    Returns:
        Logger instance
    """
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Install a stream handler on the package root logger.

    Calling it again replaces the previously installed handler.

    Example:
        >>> configure_logging("DEBUG")
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, "_multichain_tx", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(_ContextFilter())
    handler._multichain_tx = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)
    root.disabled = False
    return root


def set_level(level: Union[int, str]) -> None:
    """Set the package log level."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def disable_logging() -> None:
    """Silence all package logging."""
    logging.getLogger(ROOT_LOGGER_NAME).disabled = True


def enable_debug() -> None:
    """Shortcut for ``configure_logging(logging.DEBUG)``."""
    configure_logging(logging.DEBUG)


class LogContext:
    """
    Context manager adding fields to every record logged inside it.

    Example:
        >>> with LogContext(tx_id="tx_123", hash="0xabc"):
        ...     _logger.info("Transaction sent")
    """

    def __init__(self, **fields: Any) -> None:
        self._fields = fields
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "LogContext":
        self._token = _context.set({**_context.get(), **self._fields})
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None

    @staticmethod
    def current() -> Dict[str, Any]:
        """Fields active in the current context."""
        return dict(_context.get())
