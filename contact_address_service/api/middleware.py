"""Middleware for FastAPI application."""

import time
from typing import Callable

from fastapi import Request, Response, status
from redis.exceptions import ConnectionError, TimeoutError, RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from contact_address_service.api.errors import error_response
from contact_address_service.config.logging import (
    generate_correlation_id,
    set_correlation_id,
    LoggingService
)

logging_service = LoggingService(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to handle correlation IDs for request tracing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        set_correlation_id(correlation_id)

        logging_service.log_operation(
            "info",
            f"Request started: {request.method} {request.url.path}",
            operation="request_start",
            method=request.method,
            path=str(request.url.path),
            query_params=str(request.query_params) if request.query_params else None
        )

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id

        logging_service.log_operation(
            "info",
            f"Request completed: {request.method} {request.url.path}",
            operation="request_complete",
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code
        )
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        logging_service.log_operation(
            "info",
            "Request processed",
            operation="request_metrics",
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2),
            content_length=response.headers.get("content-length")
        )
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Last line of defence for errors no exception handler claimed.

    Validation and not-found errors are answered by the exception
    handlers in ``api.errors``; what reaches this point is a store or
    programming failure.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except (ConnectionError, TimeoutError) as e:
            logging_service.log_error(
                "Redis connection error",
                e,
                operation="error_handling",
                path=str(request.url.path),
                method=request.method
            )
            return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Redis service unavailable")

        except RedisError as e:
            logging_service.log_error(
                "Redis error",
                e,
                operation="error_handling",
                path=str(request.url.path),
                method=request.method
            )
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error occurred")

        except Exception as e:
            logging_service.log_error(
                "Unexpected error",
                e,
                operation="error_handling",
                path=str(request.url.path),
                method=request.method
            )
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred")
