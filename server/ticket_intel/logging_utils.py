# logging_utils.py
# One JSON object per log line, with the request id and any structured fields attached.

import json
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_request_id: ContextVar[Optional[str]] = ContextVar("ticketintel_request_id", default=None)

SERVICE_NAME = os.getenv("SERVICE_NAME", "ticketintel")
ENV = os.getenv("APP_ENV", "dev")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "/var/log/ticketintel/app.log")

# Every attribute a bare LogRecord carries, so structured fields can never shadow one.
_RESERVED_LOG_FIELDS = frozenset(
    logging.LogRecord("x", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JSONLineFormatter(logging.Formatter):
    """
    Render a record as ``{"ts", "level", "logger", "service", "env",
    "message", "request_id", ...fields}`` on a single line.
    """

    def format(self, record: logging.LogRecord) -> str:
        line: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "env": ENV,
            "message": record.getMessage(),
        }
        rid = _request_id.get()
        if rid:
            line["request_id"] = rid

        line.update(
            (key, value)
            for key, value in vars(record).items()
            if not key.startswith("_") and key not in _RESERVED_LOG_FIELDS and key not in line
        )
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


def configure_logging() -> None:
    """Install the JSON handlers on the root logger; later calls are no-ops."""
    root = logging.getLogger()
    if getattr(root, "_ticketintel_configured", False):
        return

    root.setLevel(LOG_LEVEL)
    handlers = [logging.StreamHandler(sys.stdout)]
    file_error = None
    try:
        if os.path.dirname(LOG_FILE):
            os.makedirs(os.path.dirname(LOG_FILE), exist_ok=True)
        handlers.append(logging.FileHandler(LOG_FILE))
    except OSError as e:
        file_error = e

    formatter = JSONLineFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    if file_error is not None:
        root.warning(f"File logging disabled ({LOG_FILE}): {file_error}")

    root._ticketintel_configured = True  # type: ignore[attr-defined]


def new_request_id() -> str:
    rid = uuid.uuid4().hex
    _request_id.set(rid)
    return rid


def set_request_id(rid: Optional[str]) -> None:
    _request_id.set(rid)


def get_request_id() -> Optional[str]:
    return _request_id.get()


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: Any) -> None:
    """
    Log ``event`` with ``fields`` as structured data.

    A field named like a LogRecord attribute is prefixed instead of
    clobbering it: ``filename=`` arrives as ``field_filename``.
    """
    extra = {(f"field_{k}" if k in _RESERVED_LOG_FIELDS else k): v for k, v in fields.items()}
    extra["event"] = event
    logger.log(level, event, extra=extra)


class TicketIntelLogger:
    """A named logger plus stage timers that are kept apart per request id."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"ticketintel.{name}")
        self.timers: Dict[str, float] = {}

    def info(self, msg, *args, **kwargs):
        self.logger.info(msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self.logger.warning(msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self.logger.error(msg, *args, **kwargs)

    def event(self, event: str, level: int = logging.INFO, **fields: Any) -> None:
        log_event(self.logger, event, level, **fields)

    def start_timer(self, name: str) -> None:
        self.timers[f"{_request_id.get() or 'global'}:{name}"] = time.perf_counter()

    def end_timer(self, name: str) -> float:
        """Seconds since ``start_timer(name)`` in this request, 0.0 if it was never started."""
        started = self.timers.pop(f"{_request_id.get() or 'global'}:{name}", None)
        return 0.0 if started is None else time.perf_counter() - started


def get_logger(name: str) -> TicketIntelLogger:
    return TicketIntelLogger(name)
