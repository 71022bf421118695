"""Structured JSON logger.

Outputs one JSON object per line:
{"time":"2026-02-03T14:06:20.829529-05:00","level":"DEBUG","logger":"pdf_layout_server","source":{"function":"detect_tables","file":"tables.py","line":199},"msg":"rulings classified","file_name":"modelo347.pdf","page_number":1,"horizontal":3}

Records emitted while converting a file carry its ``file_name`` and the current
``page_number`` through the context fields.
"""

import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Context variable for fields shared by every record of one conversion
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

DEFAULT_LOG_LEVEL = "INFO"


class StructuredFormatter(logging.Formatter):
    """JSON formatter with source location and context fields."""

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc).astimezone()

        log_entry: dict[str, Any] = {
            "time": now.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "source": {
                "function": record.funcName,
                "file": record.pathname,
                "line": record.lineno,
            },
            "msg": record.getMessage(),
        }

        ctx_fields = _log_context.get()
        if ctx_fields:
            log_entry.update(ctx_fields)

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


class StructuredLogger:
    """Logger that writes structured JSON records to stdout."""

    def __init__(self, name: str = "app", level: str | None = None):
        self._logger = logging.getLogger(name)
        level_name = (level or os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper()
        self._logger.setLevel(getattr(logging, level_name, logging.INFO))

        self._logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        self._logger.addHandler(handler)

        self._logger.propagate = False

    def set_level(self, level: str) -> None:
        """Change the minimum level, e.g. ``"DEBUG"`` for per-page diagnostics."""
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    def _log(
        self,
        level: int,
        msg: str,
        stacklevel: int = 3,
        **fields: Any,
    ) -> None:
        extra = {"extra_fields": fields} if fields else {}
        self._logger.log(level, msg, stacklevel=stacklevel, extra=extra)

    def debug(self, msg: str, **fields: Any) -> None:
        """Log a debug message with optional fields."""
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        """Log an info message with optional fields."""
        self._log(logging.INFO, msg, **fields)

    def warn(self, msg: str, **fields: Any) -> None:
        """Log a warning message with optional fields."""
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, **fields: Any) -> None:
        """Log an error message with optional fields."""
        self._log(logging.ERROR, msg, **fields)


def set_context(**fields: Any) -> None:
    """Set context fields included in all subsequent log messages.

    Example:
        set_context(file_name="modelo347.pdf", page_number=2)
        logger.debug("tables detected", count=1)  # includes file_name and page_number
    """
    current = _log_context.get()
    _log_context.set({**current, **fields})


def clear_context() -> None:
    """Clear all context fields."""
    _log_context.set({})


def get_context() -> dict[str, Any]:
    """Get current context fields."""
    return _log_context.get().copy()


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Scope context fields to a block, restoring the previous fields on exit.

    Example:
        with log_context(file_name="modelo347.pdf"):
            for page in pages:
                set_context(page_number=page.page_number)
                ...
    """
    token = _log_context.set({**_log_context.get(), **fields})
    try:
        yield
    finally:
        _log_context.reset(token)


# Default logger instance
logger = StructuredLogger("pdf_layout_server")
