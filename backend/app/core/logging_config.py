"""
Logging setup for the safety API.

Records may carry alert-domain extras (alert_id, contact_id, phone,
channel). Phone numbers are masked to their last four digits before they
reach any handler, since emergency contacts are personal data.

Production writes one JSON object per line; development writes a short
console line with the extras appended as key=value pairs.

Usage:
    from backend.app.core.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Alert created", extra={"alert_id": 7, "channel": "sms"})
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from backend.app.core.config import settings

_request_context: ContextVar[Dict[str, Any]] = ContextVar(
    "request_context", default={}
)

# Alert-domain extras, in display order
DOMAIN_FIELDS = ("alert_id", "contact_id", "channel", "phone")
# Request extras set by the access log middleware
REQUEST_FIELDS = ("endpoint", "status_code", "duration_ms")


def set_request_context(**kwargs: Any) -> None:
    """Bind request_id / client_ip for the rest of this request."""
    _request_context.set(kwargs)


def mask_phone(phone: Optional[str]) -> Optional[str]:
    """'+923001234567' -> '+********4567'."""
    if not phone:
        return phone
    prefix = "+" if phone.startswith("+") else ""
    body = phone[len(prefix):]
    return prefix + "*" * max(len(body) - 4, 0) + body[-4:]


class AlertContextFilter(logging.Filter):
    """Attach the request context and mask phone extras."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = _request_context.get()
        record.request_id = ctx.get("request_id")
        record.client_ip = ctx.get("client_ip")
        if getattr(record, "phone", None):
            record.phone = mask_phone(str(record.phone))
        return True


def _extras(record: logging.LogRecord, fields) -> Dict[str, Any]:
    return {
        key: getattr(record, key)
        for key in fields
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if getattr(record, "request_id", None):
            entry["request_id"] = record.request_id
            entry["client_ip"] = record.client_ip
        entry.update(_extras(record, DOMAIN_FIELDS + REQUEST_FIELDS))

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """`12:00:01 WARNING [ab12cd34] alerts: SMS failed  alert=7 channel=sms`"""

    # Emergency traffic is logged at WARNING and above; make it stand out.
    HIGHLIGHT = {"WARNING": "\033[33m", "ERROR": "\033[31m", "CRITICAL": "\033[35m"}
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.HIGHLIGHT.get(record.levelname, "")
        level = f"{color}{record.levelname:8s}{self.RESET if color else ''}"
        rid = getattr(record, "request_id", None)
        rid_str = f" [{rid[:8]}]" if rid else ""

        line = (
            f"{self.formatTime(record, '%H:%M:%S')} {level}{rid_str} "
            f"{record.name.rsplit('.', 1)[-1]}: {record.getMessage()}"
        )
        extras = _extras(record, DOMAIN_FIELDS)
        if extras:
            short = {k.replace("_id", ""): v for k, v in extras.items()}
            line += "  " + " ".join(f"{k}={v}" for k, v in short.items())

        if record.exc_info and record.exc_info[1]:
            line += f"\n  {type(record.exc_info[1]).__name__}: {record.exc_info[1]}"
        return line


def setup_logging() -> None:
    """Configure the root logger based on environment."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(AlertContextFilter())
    handler.setFormatter(JSONFormatter() if settings.is_production else ConsoleFormatter())
    root.addHandler(handler)

    # The middleware writes its own access line
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
