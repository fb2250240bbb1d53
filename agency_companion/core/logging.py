"""Structured key=value logging for Agency Companion.

Every module logger is a child of the "agency_companion" logger, which owns the
single stdout handler. Context fields passed through `extra=` are appended to
the line after the message.
"""

import logging
import os
import sys
from typing import Any

ROOT_LOGGER = "agency_companion"

# Attributes present on every LogRecord; anything else came in through `extra=`
_RESERVED_ATTRS = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
}


def _format_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text) or "=" in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


class StructuredFormatter(logging.Formatter):
    """Render records as `ts=... level=... logger=... msg="..." key=value`."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in fields:
                fields[key] = value

        line = " ".join(f"{key}={_format_value(value)}" for key, value in fields.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _default_level() -> int:
    # Read straight from the environment: loggers are created at import time,
    # before Settings can be validated.
    return logging.DEBUG if os.getenv("APP_ENV", "dev") == "dev" else logging.INFO


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)
        root.setLevel(_default_level())
        root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package root.

    Args:
        name: Logger name (typically __name__); names outside the package
            are nested under it, e.g. "scripts.seed_clients"

    Returns:
        Logger whose records reach the structured stdout handler
    """
    _configure_root()
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, msg: str, **context: Any) -> None:
    """Log `msg` with `context` rendered as extra key=value fields."""
    logger.log(level, msg, extra=context)
