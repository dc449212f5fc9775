"""
Error taxonomy and the single place where errors become HTTP responses.

Every stage and handler raises; nothing formats its own error body.
"""
from typing import Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from .metrics import ERROR_COUNT, SERVICE_NAME, endpoint_label

SERVER_ERROR_NAME = "ServerError"
DEFAULT_MESSAGE = "An unexpected error occurred"


class ProductServiceError(Exception):
    status_code = 500
    error_name = SERVER_ERROR_NAME

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(ProductServiceError):
    status_code = 404
    error_name = "NotFoundError"


class RouteNotFoundError(NotFoundError):
    """No route matches the request method and path."""

    def __init__(self, message: str = "Route not found"):
        super().__init__(message)


class ValidationError(ProductServiceError):
    status_code = 400
    error_name = "ValidationError"


class AuthError(ProductServiceError):
    status_code = 401
    # Clients match on {"error": "Error"} for auth failures
    error_name = "Error"


def classify_error(exc: Exception) -> Tuple[int, str, str]:
    """Map an exception to ``(status_code, error_name, message)``."""
    if isinstance(exc, ProductServiceError):
        return exc.status_code, exc.error_name, exc.message or DEFAULT_MESSAGE
    if isinstance(exc, StarletteHTTPException) and exc.status_code in (404, 405):
        route_error = RouteNotFoundError()
        return route_error.status_code, route_error.error_name, route_error.message
    return 500, SERVER_ERROR_NAME, DEFAULT_MESSAGE


def error_response(request: Request, exc: Exception) -> JSONResponse:
    status_code, error_name, message = classify_error(exc)

    if status_code >= 500:
        logger.opt(exception=exc).error(f"{type(exc).__name__}: {exc}")
    else:
        logger.warning(f"{error_name}: {message}")
    ERROR_COUNT.labels(service=SERVICE_NAME, endpoint=endpoint_label(request), error_type=error_name).inc()

    return JSONResponse(status_code=status_code, content={"error": error_name, "message": message})


async def handle_error(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler hook for errors raised inside the router."""
    return error_response(request, exc)
