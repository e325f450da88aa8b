"""
Centralized error handlers.

Maps the exceptions raised while serving a request to HTTP responses:

* :class:`RequestValidationFailed` and FastAPI's own request
  validation errors become ``400 {"errors": [...]}``.
* Driver failures (:class:`pymongo.errors.PyMongoError`) and any other
  unexpected exception become ``500 {"error": "Internal server error"}``.

No stack traces or driver messages are exposed to clients; they are
logged instead.
"""

import logging
from typing import List

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from people_api.app.core.validation import RequestValidationFailed, field_errors_from
from people_api.app.schemas.error import ErrorResponse, FieldError, ValidationErrorResponse

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"


def validation_error_response(errors: List[FieldError]) -> JSONResponse:
    body = ValidationErrorResponse(errors=errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(body),
    )


def internal_error_response() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=INTERNAL_ERROR).model_dump(),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on the FastAPI application."""

    @app.exception_handler(RequestValidationFailed)
    async def handle_validation_failed(request: Request, exc: RequestValidationFailed) -> JSONResponse:
        logger.warning(
            "Rejected %s %s: %s",
            request.method,
            request.url.path,
            ", ".join(f"{e.field} ({e.message})" for e in exc.errors),
        )
        return validation_error_response(exc.errors)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = field_errors_from(exc.errors())
        logger.warning("Malformed request %s %s", request.method, request.url.path)
        return validation_error_response(errors)

    @app.exception_handler(PyMongoError)
    async def handle_storage_error(request: Request, exc: PyMongoError) -> JSONResponse:
        logger.error(
            "Storage error on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return internal_error_response()

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unexpected error: %s", type(exc).__name__, exc_info=exc)
        return internal_error_response()
