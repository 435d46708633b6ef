"""
fuelops_kernel.logging_config -- JSON log lines tagged with who, where and which entry.

Responsibility:
    One JSON object per log line for everything under the ``fuelops``
    logger namespace.  Each line carries the event name (``message``),
    the caller's ``extra`` fields, and whatever the current ``LogContext``
    holds: the signed-in user and role, the station, the entry and product
    being worked on, and the backend path of the request in flight.

Architecture position:
    Kernel -- no imports from the rest of the project.  Services bind
    context with ``LogContext.bind_user`` / ``bind_entry``; the domain
    objects are read duck-typed.

Invariants enforced:
    - Every line is valid JSON; dates, datetimes and enums are written as
      ISO strings and enum values.
    - Bearer tokens and passwords never reach a log line: any field named
      like one is written as ``"[redacted]"``, inside nested dicts too.
    - An explicit ``extra`` field wins over a context field of the same
      name.
    - ``configure_logging`` is idempotent; ``reset_logging`` undoes it.
"""

from __future__ import annotations

__all__ = [
    "CONTEXT_FIELDS",
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
from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

_LOGGER_PREFIX = "fuelops"

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "actor_id",
    "role",
    "station_id",
    "entry_id",
    "product",
    "request_path",
)

REDACTED = "[redacted]"
_SENSITIVE_KEYS = frozenset({"token", "auth_token", "authorization", "password"})

# =============================================================================
# Context
# =============================================================================

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("fuelops_log_context", default=_EMPTY)


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _checked(fields: Mapping[str, Any]) -> dict[str, str]:
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"unknown log context field(s): {', '.join(sorted(unknown))}")
    return {k: _text(v) for k, v in fields.items() if v is not None}


class LogContext:
    """
    Per-thread / per-task log fields.

    Contract:
        Only names in ``CONTEXT_FIELDS`` are accepted; ``None`` values are
        skipped, so a partially known context can be bound in one call.
    """

    @staticmethod
    def set(**fields: Any) -> None:
        """Add fields to the current context."""
        _context.set(MappingProxyType({**_context.get(), **_checked(fields)}))

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Add fields for the duration of a ``with`` block."""
        token = _context.set(MappingProxyType({**_context.get(), **_checked(fields)}))
        try:
            yield
        finally:
            _context.reset(token)

    @staticmethod
    def bind_user(session: Any) -> AbstractContextManager[None]:
        """Bind actor, role and (for station managers) station of a ``UserSession``."""
        return LogContext.bind(
            actor_id=session.user_id,
            role=session.role,
            station_id=session.station_id,
        )

    @staticmethod
    def bind_entry(entry: Any) -> AbstractContextManager[None]:
        """Bind id, product and station of an ``Entry``; unsaved entries have no id."""
        return LogContext.bind(
            entry_id=entry.id,
            product=entry.product,
            station_id=entry.station_id,
        )


# =============================================================================
# Formatter
# =============================================================================

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    return str(obj)


def _redact(key: str, value: Any) -> Any:
    if key.lower() in _SENSITIVE_KEYS:
        return REDACTED
    if isinstance(value, Mapping):
        return {k: _redact(str(k), v) for k, v in value.items()}
    return value


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: fixed keys, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())

        for key, value in vars(record).items():
            if key not in _STDLIB_KEYS:
                payload[key] = _redact(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            code = getattr(exc, "code", None)
            if code is not None:
                payload["exc_code"] = code
            # FuelOpsError subclasses keep their details as public attributes.
            for key, value in vars(exc).items():
                if not key.startswith("_"):
                    payload[f"exc_{key}"] = _redact(key, value)
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# =============================================================================
# Setup
# =============================================================================


def get_logger(name: str) -> logging.Logger:
    """Logger ``fuelops.<name>``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the ``fuelops`` logger.  Later calls are no-ops.

    ``level`` may be a number or a name such as ``"debug"``.
    """
    global _configured
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level: {level}")
        level = resolved

    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False

    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)


def reset_logging() -> None:
    """Remove the handlers ``configure_logging`` attached.  For tests."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
