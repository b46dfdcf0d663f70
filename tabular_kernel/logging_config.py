"""
Structured JSON logging for the tabular decoder.

Every record is one JSON object per line:

    {"ts": ..., "level": ..., "logger": "tabular.ingestion.decode_service",
     "message": "decode_started", "correlation_id": ..., "source": ...,
     "target": ..., "mode": ..., <extra fields>}

The decode context (``correlation_id``, ``source``, ``target``, ``mode``) is
bound once per decode call with ``LogContext.bind`` and attached to every
record emitted inside it, including those from the resolver.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from typing import Any

_LOGGER_PREFIX = "tabular"


# ---------------------------------------------------------------------------
# Decode context
# ---------------------------------------------------------------------------


class LogContext:
    """Per-decode log fields, isolated per thread and per task."""

    FIELDS = ("correlation_id", "source", "target", "mode")

    _vars: dict[str, ContextVar[str | None]] = {
        name: ContextVar(f"tabular_{name}", default=None) for name in FIELDS
    }

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """Return the bound fields (unset ones omitted)."""
        return {name: var.get() for name, var in cls._vars.items() if var.get() is not None}

    @classmethod
    def clear(cls) -> None:
        for var in cls._vars.values():
            var.set(None)

    @classmethod
    def bind(cls, **fields: str | None) -> "_Binding":
        """Bind fields for the duration of a ``with`` block.

        Unknown names and None values are ignored. Previous values are
        restored on exit.
        """
        return _Binding({k: v for k, v in fields.items() if k in cls._vars and v is not None})


class _Binding:
    def __init__(self, fields: dict[str, str]):
        self._fields = fields
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> type[LogContext]:
        for name, value in self._fields.items():
            var = LogContext._vars[name]
            self._tokens.append((var, var.set(value)))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


class _JSONEncoder(json.JSONEncoder):
    """Encode values decoded from cells (datetime, Decimal) and UUIDs."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    # TabularError subclasses expose their structured attributes (kind,
    # text, field, record, line, ...) as exc_<name>
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())
        payload.update(
            (key, value) for key, value in vars(record).items()
            if key not in _STDLIB_KEYS and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, cls=_JSONEncoder)


# ---------------------------------------------------------------------------
# Loggers
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the tabular namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(*, level: int = logging.INFO, handler: logging.Handler | None = None) -> None:
    """
    Send tabular logs to ``handler`` (stderr by default) as JSON lines.

    Idempotent: a second call while a structured handler is installed does
    nothing.
    """
    logger = logging.getLogger(_LOGGER_PREFIX)
    if any(isinstance(h.formatter, StructuredFormatter) for h in logger.handlers):
        return
    handler = handler if handler is not None else logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def reset_logging() -> None:
    """Remove configured handlers and restore propagation. For tests."""
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
    logger.propagate = True
