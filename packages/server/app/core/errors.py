"""
Domain error taxonomy and its HTTP mapping.

Services raise these for expected outcomes (missing entity, duplicate,
illegal lifecycle move, lapsed invitation, bad input, gated feature).
Anything else propagates untouched and surfaces as a 500.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tenantcore_shared.schemas.common import ErrorCode

log = structlog.get_logger()


class TenantCoreError(Exception):
    """Base class for every expected failure raised by the core services."""

    code: ErrorCode = ErrorCode.VALIDATION_ERROR
    status_code: int = 400

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(TenantCoreError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class ConflictError(TenantCoreError):
    code = ErrorCode.CONFLICT
    status_code = 409


class InvalidStateError(TenantCoreError):
    """A lifecycle transition was attempted from the wrong state."""

    code = ErrorCode.INVALID_STATE
    status_code = 409


class ExpiredError(TenantCoreError):
    code = ErrorCode.EXPIRED
    status_code = 410


class ValidationError(TenantCoreError):
    code = ErrorCode.VALIDATION_ERROR
    status_code = 422


class ForbiddenError(TenantCoreError):
    code = ErrorCode.FORBIDDEN
    status_code = 403


def _envelope(code: ErrorCode, message: str, status: int) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={
            "error": {
                "code": code.value,
                "message": message,
                "status": status,
            }
        },
    )


async def _handle_domain_error(request: Request, exc: TenantCoreError) -> JSONResponse:
    log.info(
        "request.rejected",
        error_code=exc.code.value,
        http_status=exc.status_code,
        reason=exc.message,
        details=exc.details,
    )
    return _envelope(exc.code, exc.message, exc.status_code)


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else "Invalid request"
    return _envelope(ErrorCode.VALIDATION_ERROR, message, 422)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TenantCoreError, _handle_domain_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
