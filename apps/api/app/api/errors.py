from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.services.exceptions import (
    BackendConfigurationError,
    ImageUploadError,
    NotFoundError,
    ReferentialIntegrityError,
    ServiceError,
    UnexpectedError,
    UniquenessError,
    ValidationError,
)

logger = structlog.get_logger()


def status_for(err: ServiceError) -> int:
    if isinstance(err, ValidationError):
        status = 400
    elif isinstance(err, ReferentialIntegrityError):
        status = 400
    elif isinstance(err, NotFoundError):
        # Slug lookups report misses as bad requests; update routes pass 404
        status = 400
    elif isinstance(err, UniquenessError):
        status = 409
    else:
        status = 500
    return status


def error_response(
    status: int,
    message: str,
    code: str,
    error: str | None = None,
) -> JSONResponse:
    content: dict[str, str] = {"message": message, "code": code}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status, content=content)


def http_error_from_service(
    err: ServiceError,
    *,
    status: int | None = None,
    failure_message: str | None = None,
) -> JSONResponse:
    """Render a service error as ``{message, code[, error]}``.

    Client errors carry the service message verbatim. Server errors carry a
    generic ``failure_message`` with the exception text in ``error`` for
    operators; stack traces only go to the log.
    """
    status = status or status_for(err)
    if status < 500:
        return error_response(status, err.message, err.code)

    if isinstance(err, BackendConfigurationError):
        message = "Database configuration error"
    elif isinstance(err, ImageUploadError):
        message = failure_message or "Image upload failed"
    else:
        message = failure_message or "An unexpected error occurred"

    logger.error("service_error", code=err.code, error=err.message, status=status)
    return error_response(status, message, err.code, error=err.message)


async def _handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    return http_error_from_service(exc)


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", method=request.method, path=request.url.path)
    return http_error_from_service(UnexpectedError(str(exc) or type(exc).__name__))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _handle_service_error)
    app.add_exception_handler(Exception, _handle_unexpected)
