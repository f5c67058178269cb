"""
Error envelope and exception handlers.

Every failure generated by the gateway itself is rendered as
``{"error": ..., "message": ...}``. Backend error responses relayed by the
proxy are not touched.
"""

import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .models import ErrorResponse

logger = logging.getLogger(__name__)

MISSING_TOKEN_ERROR = "Authorization token required"
MISSING_TOKEN_MESSAGE = (
    "No authorization header found in request. Please ensure you are logged in."
)
INVALID_REQUEST_ERROR = "Invalid request"


class ApiError(Exception):
    """Exception carrying an HTTP status and the gateway error envelope."""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message
        self.headers = headers


class MissingCredentialError(ApiError):
    """Raised when a request has no usable bearer token."""

    def __init__(self, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            MISSING_TOKEN_ERROR,
            MISSING_TOKEN_MESSAGE,
            headers=headers,
        )


def error_response(
    status_code: int,
    error: str,
    message: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build a JSON response carrying the error envelope."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message).model_dump(),
        headers=headers,
    )


def exception_message(exc: BaseException) -> str:
    """Message surfaced to clients for an unexpected exception."""
    return str(exc) or "Unknown error"


def validation_message(exc: RequestValidationError) -> str:
    """First validation error as "location: message"."""
    errors = exc.errors()
    if not errors:
        return "Request validation failed"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the ApiError, validation and last-resort handlers to the application."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return error_response(exc.status_code, exc.error, exc.message, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(
            f"Invalid request body: {exc.errors()}",
            extra={"path": request.url.path, "method": request.method},
        )
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            INVALID_REQUEST_ERROR,
            validation_message(exc),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns the standard error envelope.
        """
        logger.error(
            f"Unhandled exception: {exc}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
            },
            exc_info=True,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            exception_message(exc),
        )
