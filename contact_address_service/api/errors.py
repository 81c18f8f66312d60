"""Translation of service errors into HTTP responses.

Every failure leaves the API as ``{"errors": ...}``: a list of field
errors for rejected input, a message string for everything else.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException

from contact_address_service.config.logging import LoggingService
from contact_address_service.exceptions import NotFoundError

logging_service = LoggingService(__name__)


def error_response(status_code: int, errors: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"errors": jsonable_encoder(errors)})


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    errors = exc.errors(include_url=False, include_context=False)
    logging_service.log_operation(
        "warning",
        "Validation error",
        operation="error_handling",
        path=str(request.url.path),
        method=request.method,
        error_count=len(errors)
    )
    return error_response(status.HTTP_400_BAD_REQUEST, errors)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {key: value for key, value in error.items() if key not in ("ctx", "url")}
        for error in exc.errors()
    ]
    logging_service.log_operation(
        "warning",
        "Request validation error",
        operation="error_handling",
        path=str(request.url.path),
        method=request.method,
        error_count=len(errors)
    )
    return error_response(status.HTTP_400_BAD_REQUEST, errors)


async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logging_service.log_operation(
        "info",
        exc.message,
        operation="error_handling",
        path=str(request.url.path),
        method=request.method
    )
    return error_response(status.HTTP_404_NOT_FOUND, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    response = error_response(exc.status_code, exc.detail)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
