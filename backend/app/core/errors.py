"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Every failure leaves the API as one of four shapes:

    validation failure      400  field errors under "errors"
    not found               404
    configuration missing   400  e.g. no primary contact
    unexpected failure      500  generic message

All bodies carry a top-level "message" (what the client displays) plus an
"error" object with a machine-readable code.

Usage:
    from backend.app.core.errors import NotFoundError, register_error_handlers

    raise NotFoundError("Emergency contact", id=4)
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.core.config import settings

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class SafetyAPIError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class NotFoundError(SafetyAPIError):
    """Resource not found (404)."""

    def __init__(self, resource: str, **identifiers: Any):
        super().__init__(
            message=f"{resource} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"resource": resource, **identifiers},
        )


class ValidationError(SafetyAPIError):
    """Input validation failed (400)."""

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[List[Dict[str, Any]]] = None,
        **details: Any,
    ):
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )
        self.errors = errors or []


class PrimaryContactMissingError(SafetyAPIError):
    """An alert was triggered with no primary contact configured (400)."""

    def __init__(self):
        super().__init__(
            message="No primary contact configured",
            status_code=400,
            error_code="PRIMARY_CONTACT_MISSING",
        )


class ContactLimitError(SafetyAPIError):
    """The contact list is already full (400)."""

    def __init__(self, limit: int):
        super().__init__(
            message=f"Maximum of {limit} emergency contacts reached",
            status_code=400,
            error_code="CONTACT_LIMIT_REACHED",
            details={"limit": limit},
        )


class DeliveryError(SafetyAPIError):
    """Notification gateway could not be reached (502)."""

    def __init__(self, channel: str, message: str = "", **details: Any):
        super().__init__(
            message=f"Delivery via {channel} failed: {message}",
            status_code=502,
            error_code="DELIVERY_ERROR",
            details={"channel": channel, **details},
        )


# ═══════════════════════════════════════════════════════════════════════════
# Error Response Builder
# ═══════════════════════════════════════════════════════════════════════════

# Validation messages keyed by route prefix
_VALIDATION_MESSAGES = (
    ("/api/emergency-contacts", "Invalid contact data"),
    ("/api/emergency-alerts", "Invalid alert data"),
    ("/api/settings", "Invalid settings data"),
)


def validation_message_for(path: str) -> str:
    """Pick the client-facing validation message for a request path."""
    for prefix, message in _VALIDATION_MESSAGES:
        if path.startswith(prefix):
            return message
    return "Invalid request data"


def _build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    errors: Optional[List[Dict[str, Any]]] = None,
    request: Optional[Request] = None,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: Dict[str, Any] = {
        "message": message,
        "error": {
            "code": error_code,
            "status": status_code,
        },
    }

    if errors:
        body["errors"] = errors
    if details:
        body["error"]["details"] = details

    # Include request path in non-production
    if request and not settings.is_production:
        body["error"]["path"] = str(request.url.path)
        body["error"]["method"] = request.method

    return JSONResponse(status_code=status_code, content=body)


def _field_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors to {path, message, type} entries."""
    return [
        {
            "path": [str(p) for p in err.get("loc", ()) if p != "body"],
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(SafetyAPIError)
    async def handle_safety_error(request: Request, exc: SafetyAPIError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log("API Error [%s]: %s | details=%s", exc.error_code, exc.message, exc.details)
        return _build_error_response(
            exc.status_code, exc.error_code, exc.message,
            exc.details, getattr(exc, "errors", None), request,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        error = ValidationError(
            validation_message_for(request.url.path), errors=_field_errors(exc),
        )
        logger.warning("Validation failed on %s: %s", request.url.path, error.errors)
        return _build_error_response(
            error.status_code, error.error_code, error.message,
            errors=error.errors, request=request,
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical(
            "Unhandled exception: %s\n%s",
            exc, traceback.format_exc(),
        )
        details = (
            {"exception": type(exc).__name__, "detail": str(exc)}
            if settings.DEBUG else None
        )
        return _build_error_response(
            500, "INTERNAL_ERROR", "Internal server error", details, request=request,
        )
