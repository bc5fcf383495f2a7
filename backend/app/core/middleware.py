"""
Request middleware — logging, timing, correlation IDs.

Every request gets an X-Request-ID (echoed from the client when supplied)
and an X-Process-Time header, and one log line on completion.

Emergency actions (send-sms, emergency-trigger) always log at WARNING so
an SOS stands out in the stream even when it succeeds.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from backend.app.core.logging_config import set_request_context

logger = logging.getLogger(__name__)

_QUIET_PREFIXES = ("/docs", "/redoc", "/openapi", "/favicon", "/health")
_EMERGENCY_PATHS = ("/api/send-sms", "/api/emergency-trigger")


def _level_for(path: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400 or path in _EMERGENCY_PATHS:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every API request with timing and inject a correlation ID."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:16]
        client_ip = request.client.host if request.client else "unknown"
        path = request.url.path

        set_request_context(
            request_id=request_id,
            client_ip=client_ip,
            endpoint=path,
            method=request.method,
        )
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            self._log(request.method, path, 500, start, client_ip)
            set_request_context()
            raise

        duration_ms = self._log(request.method, path, response.status_code, start, client_ip)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{duration_ms:.1f}ms"

        set_request_context()
        return response

    @staticmethod
    def _log(method: str, path: str, status_code: int, start: float, client_ip: str) -> float:
        duration_ms = (time.perf_counter() - start) * 1000
        if status_code < 500 and path.startswith(_QUIET_PREFIXES):
            return duration_ms

        logger.log(
            _level_for(path, status_code),
            "%s %s → %d (%.1fms) [%s]",
            method, path, status_code, duration_ms, client_ip,
            extra={
                "duration_ms": duration_ms,
                "status_code": status_code,
                "endpoint": path,
            },
        )
        return duration_ms
