"""Logging setup shared by the API and the Celery worker.

Records from the pipeline carry ``project_id``, ``run_id`` and ``stage``
extras.  The JSON formatter emits them as fields; the plain formatter appends
them to the message so a worker log can be followed one project at a time.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

ACCESS_LOGGER = "evplanner.access"

REQUEST_FIELDS = ("method", "path", "status_code", "duration_ms", "client_ip")
PIPELINE_FIELDS = ("project_id", "run_id", "stage")

# Third-party loggers that are too chatty at INFO.
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "celery.app.trace")


def _field(value: Any) -> Any:
    return str(value) if isinstance(value, uuid.UUID) else value


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with request ID and pipeline context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = request_id_var.get("")
        if rid:
            entry["request_id"] = rid

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        for key in REQUEST_FIELDS + PIPELINE_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = _field(val)

        return json.dumps(entry)


class ContextFormatter(logging.Formatter):
    """Plain text formatter that appends ``key=value`` pipeline context."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = [
            f"{key}={_field(getattr(record, key))}"
            for key in PIPELINE_FIELDS
            if getattr(record, key, None) is not None
        ]
        if not context:
            return line
        head, sep, tail = line.partition("\n")
        return f"{head} [{' '.join(context)}]{sep}{tail}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Propagate or assign X-Request-ID and log each request's timing."""

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        token = request_id_var.set(rid)

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        finally:
            request_id_var.reset(token)
        duration_ms = round((time.perf_counter() - start) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        logging.getLogger(ACCESS_LOGGER).info(
            "%s %s -> %s (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "method": request.method,
                "path": str(request.url.path),
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
        return response


def build_handler(json_format: bool = False) -> logging.Handler:
    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            ContextFormatter(
                "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    return handler


def setup_logging(json_format: bool = False, level: str | int = logging.INFO) -> None:
    """Replace the root logger's handlers with a single configured handler."""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(build_handler(json_format))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
