"""Structured JSON logging with request correlation.

Configures python-json-logger with Cloud Logging severity names and stamps
every record with the id of the request being served, if any.
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from ingest_service.config import LOG_JSON

_SEVERITY = {
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
    "CRITICAL": "CRITICAL",
}

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


class SeverityJsonFormatter(JsonFormatter):
    """JSON formatter that maps Python log levels to Cloud Logging severity."""

    def add_fields(
        self,
        log_record: dict[str, object],
        record: logging.LogRecord,
        message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["severity"] = _SEVERITY.get(record.levelname, record.levelname)
        log_record.pop("levelname", None)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def setup_logging(*, level: str = "INFO", json_format: bool | None = None) -> None:
    """Configure JSON logging on Cloud Run or with LOG_FORMAT=json, plain text otherwise."""
    use_json = LOG_JSON if json_format is None else json_format

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    if use_json:
        handler.setFormatter(SeverityJsonFormatter(
            fmt="%(message)s %(name)s %(funcName)s %(lineno)d %(request_id)s",
            rename_fields={"name": "logger"},
        ))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d [%(request_id)s]  %(message)s",
            datefmt="%H:%M:%S",
        ))

    root.addHandler(handler)


def generate_request_id() -> str:
    """Generate a unique request ID for trace correlation."""
    return uuid.uuid4().hex[:16]
