"""
Error taxonomy and the JSON error envelope.

Services raise these directly; the handlers registered in ``register_error_handlers``
render every failure as ``{"success": false, "error": <message>, "code": <code>}``.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = structlog.get_logger()


class AppError(HTTPException):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(status_code=self.status_code, detail=message, headers=headers)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self.detail)


class AuthenticationError(AppError):
    """Missing, invalid, expired or revoked session token."""

    status_code = 401
    code = "AUTHENTICATION_REQUIRED"


class AuthorizationError(AppError):
    """Valid session, but insufficient organization membership or role."""

    status_code = 403
    code = "FORBIDDEN"


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class InternalError(AppError):
    status_code = 500
    code = "INTERNAL_ERROR"


def error_envelope(message: str, code: str, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message, "code": code}
    body.update(extra)
    return body


def error_response(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_envelope(message, code))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("request.failed", path=request.url.path, code=exc.code, error=exc.message)
    response = error_response(exc.status_code, exc.message, exc.code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (404 route not found, 405, ...)."""
    codes = {401: "AUTHENTICATION_REQUIRED", 403: "FORBIDDEN", 404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}
    return error_response(exc.status_code, str(exc.detail), codes.get(exc.status_code, "HTTP_ERROR"))


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(400, message, ValidationError.code)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.unhandled_error", path=request.url.path)
    return error_response(500, "Internal server error", InternalError.code)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
