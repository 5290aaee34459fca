# File: civic_issues/core/errors.py
# Project: civic-issues-backend
"""Domain errors and the boundary that turns them into JSON envelopes.

Errors are raised where they are detected and travel unchanged to the
handlers registered here, which map the kind to a status code and the
``{success: false, message, error_code, errors?}`` body.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 400
    error_code = "bad_request"
    default_message = "Bad request"

    def __init__(self, message: Optional[str] = None, errors: Optional[list[dict]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class BadRequestError(AppError):
    pass


class InvalidTransitionError(AppError):
    error_code = "invalid_transition"
    default_message = "Invalid status transition"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "unauthorized"
    default_message = "Not authenticated"


class ForbiddenError(AppError):
    status_code = 403
    error_code = "forbidden"
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"
    default_message = "Resource already exists"


class UpstreamError(AppError):
    status_code = 500
    error_code = "upstream_error"
    default_message = "Upstream service failed"


_HTTP_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    413: "payload_too_large",
    429: "rate_limited",
}


def envelope(status_code: int, message: str, error_code: str, errors: Any = None) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "message": message, "error_code": error_code}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def _field_name(loc) -> str:
    # ("body", "location", "coordinates", 0) -> "location.coordinates.0"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header", "form")]
    return ".".join(parts) or "request"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return envelope(exc.status_code, exc.message, exc.error_code, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [{"field": _field_name(e.get("loc", ())), "message": e.get("msg", "Invalid value")}
                  for e in exc.errors()]
        return envelope(400, "Validation error", "bad_request", errors)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return envelope(exc.status_code, message, _HTTP_CODES.get(exc.status_code, "error"))

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning("Unique constraint violated on %s %s: %s", request.method, request.url.path, exc.orig)
        return envelope(409, "Duplicate value violates a unique constraint", "conflict")

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return envelope(429, "Too many requests, please try again later.", "rate_limited")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        settings = getattr(request.app.state, "settings", None)
        show_stack = not (settings and settings.is_production)
        logger.error(
            "Unhandled error on %s %s: %s", request.method, request.url.path, exc,
            exc_info=exc if show_stack else None,
        )
        return envelope(500, "Internal server error", "server_error")
