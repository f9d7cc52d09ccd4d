"""
Domain error taxonomy and global exception handlers.

Services raise the ``GeraError`` subclasses below; the handlers translate
them into JSON with a machine-readable ``reason`` and never leak stack traces.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class GeraError(Exception):
    """Base class for errors that map onto a client-visible HTTP status."""

    status_code = 400
    reason = "Error"
    default_detail = "Request failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


# ── Input validation ────────────────────────────────────────────────
class ValidationError(GeraError):
    reason = "ValidationError"
    default_detail = "Invalid request data"


class InvalidAge(ValidationError):
    reason = "InvalidAge"
    default_detail = "Age must be between 13 and 120"


class MissingFields(ValidationError):
    reason = "MissingFields"
    default_detail = "Required fields are missing"

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"Required fields are missing: {', '.join(fields)}")


# ── Account state machine ───────────────────────────────────────────
class DuplicateEmail(GeraError):
    reason = "DuplicateEmail"
    default_detail = "Email already registered"


class UnknownEmail(GeraError):
    status_code = 404
    reason = "UnknownEmail"
    default_detail = "Email not registered"


class InvalidOrExpired(GeraError):
    reason = "InvalidOrExpired"
    default_detail = "Invalid or expired code"


class InvalidCredentials(GeraError):
    status_code = 401
    reason = "InvalidCredentials"
    default_detail = "Incorrect email or password"


class NotVerified(GeraError):
    status_code = 401
    reason = "NotVerified"
    default_detail = "Email address not verified"


# ── Authorization ───────────────────────────────────────────────────
class Unauthenticated(GeraError):
    status_code = 401
    reason = "Unauthenticated"
    default_detail = "Could not validate credentials"


class InvalidToken(Unauthenticated):
    default_detail = "Invalid token"


class ExpiredToken(Unauthenticated):
    default_detail = "Token expired"


class AccessDenied(GeraError):
    status_code = 403
    reason = "AccessDenied"
    default_detail = "Administrator access required"


class Forbidden(GeraError):
    status_code = 403
    reason = "Forbidden"
    default_detail = "Admin privileges required"


# ── Records / uploads ───────────────────────────────────────────────
class NotFound(GeraError):
    status_code = 404
    reason = "NotFound"
    default_detail = "Record not found"


class TooLarge(GeraError):
    status_code = 413
    reason = "TooLarge"
    default_detail = "Uploaded file is too large"


class UnsupportedType(GeraError):
    status_code = 415
    reason = "UnsupportedType"
    default_detail = "Only image uploads are accepted"


# ── Infrastructure ──────────────────────────────────────────────────
class DeliveryError(GeraError):
    status_code = 502
    reason = "DeliveryError"
    default_detail = "Failed to send email"


class StorageFailure(GeraError):
    status_code = 503
    reason = "StorageFailure"
    default_detail = "Storage unavailable"


def _error_body(reason: str, detail: object) -> dict:
    return {"detail": detail, "reason": reason, "success": False}


async def _gera_error_handler(_request: Request, exc: GeraError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.reason, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.reason, exc.detail),
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTPError", exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def _request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content=_error_body(
            ValidationError.reason,
            f"Invalid or missing fields: {', '.join(f for f in fields if f) or 'body'}",
        ),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content=_error_body("Conflict", "Database constraint violation"),
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_body(StorageFailure.reason, "Internal database error"),
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content=_error_body("InternalError", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(GeraError, _gera_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
