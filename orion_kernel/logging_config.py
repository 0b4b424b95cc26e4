"""
Structured JSON logging for ORION.

Every record emitted under the ``orion`` logger is written as one JSON
line.  The line carries the request scope bound through ``LogContext``
(request id, tenant, project) plus whatever the call site passed in
``extra``.  Events are snake_case messages; values go in ``extra``::

    logger.info("project_rollup_completed", extra={"leaf_count": 42})
"""

__all__ = [
    "LOGGER_ROOT",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from enum import Enum
from typing import Any

LOGGER_ROOT = "orion"

_SCOPE: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"orion_log_{name}", default=None)
    for name in ("request_id", "tenant_id", "project_id")
}


def _scope_var(name: str) -> ContextVar[str | None]:
    try:
        return _SCOPE[name]
    except KeyError:
        raise ValueError(f"Unknown log context field: {name!r}") from None


class LogContext:
    """Request scope attached to every record.  Backed by contextvars, so
    concurrent requests in threads or tasks never see each other's scope."""

    @staticmethod
    def set(**fields: str | None) -> None:
        """Set scope fields.  ``None`` leaves the current value in place."""
        for name, value in fields.items():
            if value is not None:
                _scope_var(name).set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        return {
            name: var.get()
            for name, var in _SCOPE.items()
            if var.get() is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _SCOPE.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """Set scope fields for the duration of a ``with`` block."""
        tokens = [
            (_scope_var(name), _scope_var(name).set(value))
            for name, value in fields.items()
            if value is not None
        ]
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """Type, message, ``code`` and public attributes of an OrionError."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for key, value in vars(exc).items():
        if not key.startswith("_"):
            fields[f"exc_{key}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, scope, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger ``orion.<name>``."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``orion`` logger.

    Only the first call has any effect until ``reset_logging()``.  ``level``
    accepts a number or a level name such as ``"WARNING"``.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger(LOGGER_ROOT)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Detach handlers and allow ``configure_logging`` again.  Tests only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(LOGGER_ROOT)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
