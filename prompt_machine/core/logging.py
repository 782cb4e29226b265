"""
Logging for access decisions and submissions.

Every record carries the request id from context. Access logs also carry the
subject, project, field and tier involved, so a denial can be traced from one
line: JSON in production, a readable key=value tail in development.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Optional

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

LOGGER_NAME = "prompt_machine"

# Record attributes both formatters render when present.
ACCESS_KEYS = (
    "user_id",
    "project_id",
    "field_id",
    "required_tier",
    "subject_tier",
    "strategy",
    "event_type",
    "error_code",
)

EXTRA_VALUE_LIMIT = 500

LATENCY_BUCKETS = ((10, "<10ms"), (100, "10-100ms"), (500, "100-500ms"), (1000, "500-1000ms"))


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    rid = request_id_ctx_var.get()
    return rid if rid is not None else default


def _format_timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z")


def _access_fields(record: logging.LogRecord) -> Dict[str, object]:
    fields = {}
    for key in ACCESS_KEYS:
        value = getattr(record, key, None)
        if value is not None:
            fields[key] = value
    return fields


def latency_bucket_ms(latency_ms: Optional[float]) -> str:
    if latency_ms is None:
        return "unknown"
    for bound, label in LATENCY_BUCKETS:
        if latency_ms < bound:
            return label
    return ">=1000ms"


class RequestIdFilter(logging.Filter):
    """Fill request_id from context unless the caller passed one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _format_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update(_access_fields(record))
        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    """One line per record: timestamp, level, request id, message, then access fields."""

    def format(self, record: logging.LogRecord) -> str:
        rid = getattr(record, "request_id", None)
        line = f"{_format_timestamp(record)} {record.levelname} [prompt-machine]"
        if rid:
            line += f" [rid={rid}]"
        line += f" {record.getMessage()}"
        tail = " ".join(f"{k}={v}" for k, v in _access_fields(record).items())
        return f"{line} {tail}" if tail else line


def configure_logging(env: str = "development", level: str = "INFO") -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if env.lower() == "production" else PrettyFormatter())
    handler.addFilter(RequestIdFilter())

    logger.handlers = [handler]
    logger.propagate = True

    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.error").propagate = False


def _truncate(value: object, limit: int = EXTRA_VALUE_LIMIT) -> str:
    text = str(value)
    return text if len(text) <= limit else text[:limit] + "...<truncated>"


def log_event(
    level: str,
    msg: str,
    *,
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    project_id: Optional[str] = None,
    field_id: Optional[str] = None,
    required_tier: Optional[str] = None,
    subject_tier: Optional[str] = None,
    strategy: Optional[str] = None,
    event_type: Optional[str] = None,
    error_code: Optional[str] = None,
    extra: Optional[Dict[str, object]] = None,
):
    """Log ``msg`` with the access fields set as record attributes.

    Values in ``extra`` are stringified and cut to EXTRA_VALUE_LIMIT characters
    so a large answer payload cannot flood the log.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        configure_logging(os.getenv("ENV", "development"))

    payload = {key: _truncate(value) for key, value in (extra or {}).items()}
    payload.update({
        "request_id": request_id or get_request_id(),
        "user_id": user_id,
        "project_id": project_id,
        "field_id": field_id,
        "required_tier": required_tier,
        "subject_tier": subject_tier,
        "strategy": strategy,
        "event_type": event_type,
        "error_code": error_code,
    })

    log_fn = getattr(logger, level, logger.info)
    log_fn(msg, extra=payload)
