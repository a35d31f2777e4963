# logging_utils.py
# JSON-line logs for MVT-Intel: pipeline stage events, store/notifier
# calls and HTTP request timings, all tied together by request_id

import json
import logging
import os
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Per-request correlation id (attached via middleware in api.py)
_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

SERVICE_NAME = os.getenv("SERVICE_NAME", "mvtintel")
ENV = os.getenv("APP_ENV", "dev")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Optional file sink for log shippers; stdout only when unset
LOG_FILE = os.getenv("LOG_FILE")

# Built-in LogRecord fields that must never be overwritten
_RESERVED_LOG_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "asctime",
    "taskName",
}


class JSONLineFormatter(logging.Formatter):
    """
    One JSON object per record.

    A pipeline stage comes out as:
        {"ts": "...", "level": "INFO", "logger": "mvtintel.pipeline",
         "service": "mvtintel", "env": "dev", "message": "mvt_stage_finished",
         "request_id": "...", "event": "mvt_stage_finished",
         "stage": "extract", "outcome": "ok", "flight_no": "IAN521", ...}

    A rejected message logs the failing stage with outcome "rejected" and a
    reason field at WARNING. Gateway events (supabase_request, record_stored,
    twilio_request, reply_sent, ...) carry the same envelope.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "env": ENV,
            "message": record.getMessage(),
        }

        rid = _request_id.get()
        if rid:
            payload["request_id"] = rid

        for key, value in record.__dict__.items():
            if key.startswith("_"):
                continue
            if key in payload:
                continue
            if key in _RESERVED_LOG_FIELDS:
                continue

            payload[key] = value

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging() -> None:
    """
    Configure root logging once for the whole process.
    Output -> JSON to stdout, and to LOG_FILE when one is configured.
    """
    root = logging.getLogger()

    # Prevent double config
    if getattr(root, "_mvt_configured", False):
        return

    root.setLevel(LOG_LEVEL)

    formatter = JSONLineFormatter()

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if LOG_FILE:
        try:
            log_dir = os.path.dirname(LOG_FILE)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = logging.FileHandler(LOG_FILE)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        except OSError as e:
            # If file logging fails, keep stdout logging only
            root.error(f"Failed to set up file logging: {e}")

    # Keep client libraries quiet unless something goes wrong
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    root._mvt_configured = True  # type: ignore[attr-defined]


def new_request_id() -> str:
    rid = uuid.uuid4().hex
    _request_id.set(rid)
    return rid


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """
    Log `event` as the message with `fields` as top-level JSON keys.

    A field that shadows a LogRecord attribute (stage events never do, but
    e.g. `module=`) is emitted as `field_<name>` instead.
    """
    safe_fields: Dict[str, Any] = {}

    for key, value in fields.items():
        if key in _RESERVED_LOG_FIELDS:
            safe_fields[f"field_{key}"] = value
        else:
            safe_fields[key] = value

    logger.log(level, event, extra={"event": event, **safe_fields})
