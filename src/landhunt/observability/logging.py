"""Structured JSON logging with async-safe correlation IDs.

Every log line is JSON with a correlation_id that follows a single request
across all the async functions it touches. Lines logged with a LandhuntError
in exc_info carry its error_type and HTTP status, the same taxonomy the API
returns, so a failed request can be matched to its log line.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone

from landhunt.core.errors import LandhuntError

# Async-safe correlation ID, propagates through await chains
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Extra fields copied from logger.info("msg", extra={...}) into the JSON line
EXTRA_FIELDS = ("parcel_id", "source_url", "step", "duration_ms", "error_type")


def get_correlation_id() -> str:
    """Return the current correlation ID, or empty string if not set."""
    return correlation_id.get()


def _error_fields(exc: BaseException) -> dict:
    """Taxonomy fields for a landhunt error, so log lines match the API error body."""
    if not isinstance(exc, LandhuntError):
        return {}
    fields = {"error_type": exc.error_type, "status_code": exc.status_code}
    upstream_status = getattr(exc, "status", None)
    if upstream_status is not None:
        fields["upstream_status"] = upstream_status
    return fields


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = correlation_id.get()
        if cid:
            log_entry["correlation_id"] = cid

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
            log_entry.update(_error_fields(record.exc_info[1]))

        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        return json.dumps(log_entry, default=str)


def setup_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Configure root logger with JSON or text format.

    Args:
        json_format: True for JSON (production), False for text (local dev).
        level: Log level string (DEBUG, INFO, WARNING, ERROR).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    root.handlers.clear()

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(handler)

    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
