"""Logging configuration for the progress service.

Two output shapes, picked by LOG_JSON:

  _ContainerFormatter: one human-readable line per record, for a
    developer watching a terminal.  Warnings and errors carry the
    source location so the rejecting guard clause is easy to find.

  _JsonFormatter: one JSON object per line, for log aggregation.
    Context attached by the request middleware or passed through
    ``extra=`` (request_id, learner_id, course_id, ...) becomes a
    top-level key, so "every completion for learner X" is a filter,
    not a regex.

Services log through ``logging.getLogger(__name__)`` and never
configure handlers themselves; ``setup_logging`` is called once from
app/main.py and from the worker entry point.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar

# set per request by RequestContextMiddleware
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


class _RequestContextFilter(logging.Filter):
    """Stamps the current request ID onto records logged while handling it."""

    def filter(self, record: logging.LogRecord) -> bool:
        req_id = request_id_var.get()
        if req_id is not None and not hasattr(record, "request_id"):
            record.request_id = req_id  # type: ignore[attr-defined]
        return True


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter for container stdout."""

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        ms = int(record.msecs)
        # splice milliseconds in ahead of the +HHMM offset
        return f"{base[:-5]}.{ms:03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            self._style._fmt = self._BASE_FMT + self._LOC_SUFFIX
        else:
            self._style._fmt = self._BASE_FMT
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """JSON-lines formatter.

    Only context fields that are actually set on the record are emitted,
    so a log line from a background worker has no empty request_id.
    """

    _CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "user_id",
        "status_code",
        "duration_ms",
        "learner_id",
        "course_id",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Route all records to stdout with the chosen formatter.

    Unknown level names fall back to INFO.  Chatty third-party loggers
    (uvicorn, httpx, SQLAlchemy engine) are held at WARNING or above.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())
    handler.addFilter(_RequestContextFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in (
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpcore",
        "httpx",
        "sqlalchemy.engine",
    ):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
