"""
inventory_kernel.logging_config -- One JSON object per log line.

Every logger in the core lives under the ``inventory_kernel`` namespace.
Messages are snake_case event names (``sale_recorded``,
``transaction_rolled_back``); the payload travels in ``extra={...}``.

Context fields (unit, product, job, actor, correlation id) are carried in a
single ContextVar so that a SAVEPOINT loop or a job run can tag every line
it emits without threading ids through call signatures.

When a record carries an exception, its type, message and traceback are
added.  Kernel exceptions also contribute their ``code`` and public
attributes as ``exc_<name>`` keys, so ``InsufficientStockError`` logs
``exc_requested`` and ``exc_available``.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

ROOT_LOGGER = "inventory_kernel"

CONTEXT_FIELDS = ("correlation_id", "actor_id", "unit_id", "product_id", "job_name")

_context: ContextVar[Mapping[str, str]] = ContextVar("inventory_log_context", default={})


class LogContext:
    """Request-scoped fields merged into every structured log line."""

    @staticmethod
    def set(**fields: Any) -> None:
        """Set the given fields; None values leave the current value alone."""
        unknown = set(fields) - set(CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context fields: {sorted(unknown)}")
        current = dict(_context.get())
        current.update({k: str(v) for k, v in fields.items() if v is not None})
        _context.set(current)

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """
        Set fields for the duration of a ``with`` block, then restore the
        previous context.  Unknown names are ignored.
        """
        current = dict(_context.get())
        current.update(
            {k: str(v) for k, v in fields.items() if k in CONTEXT_FIELDS and v is not None}
        )
        token = _context.set(current)
        try:
            yield
        finally:
            _context.reset(token)


# Attributes every LogRecord has; anything else on a record came from extra=.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if name.startswith("_") or name in ("args", "code"):
            continue
        fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }
        for name, value in vars(record).items():
            if name not in _RECORD_ATTRS:
                payload.setdefault(name, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """``get_logger("services.sale")`` -> ``inventory_kernel.services.sale``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


_state_lock = threading.Lock()
_configured = False


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``inventory_kernel`` logger.

    Only the first call has any effect until reset_logging() is called.
    The namespace does not propagate to the root logger.
    """
    global _configured
    with _state_lock:
        if _configured:
            return
        _configured = True

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(target)


def reset_logging() -> None:
    """Drop the handler and forget the configuration. For tests."""
    global _configured
    with _state_lock:
        _configured = False
    root = logging.getLogger(ROOT_LOGGER)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
