"""Centralized exception handlers for a FastAPI request layer.

Authentication errors are mapped to HTTP responses by their category,
with a consistent error format.

Error Response Format:
    {
        "detail": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE"
    }

Wrong signup codes additionally carry ``"remaining_attempts"``.

Usage:
    from authcore.presentation.api.exception_handlers import setup_exception_handlers

    app = FastAPI()
    setup_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from authcore.exceptions import (
    AuthError,
    BadInputError,
    ConflictError,
    ErrorCode,
    IncorrectOtpError,
    NotFoundError,
    RateLimitedError,
    SecurityError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Error Category to HTTP Status Mapping
# =============================================================================

CATEGORY_TO_STATUS: tuple[tuple[type[AuthError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (ConflictError, status.HTTP_409_CONFLICT),
    (RateLimitedError, status.HTTP_429_TOO_MANY_REQUESTS),
    (BadInputError, status.HTTP_400_BAD_REQUEST),
)


def get_status_for_exception(exc: AuthError) -> int:
    """Determine the HTTP status code for an authentication error."""
    for category, status_code in CATEGORY_TO_STATUS:
        if isinstance(exc, category):
            return status_code
    return status.HTTP_401_UNAUTHORIZED


def _create_error_response(
    status_code: int,
    message: str,
    code: str,
    **extra: object,
) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": message,
            "code": code,
            **extra,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application.

    Parameters
    ----------
    app
        The FastAPI application instance
    """

    @app.exception_handler(AuthError)
    async def auth_exception_handler(
        request: Request,
        exc: AuthError,
    ) -> JSONResponse:
        """Handle authentication errors with a structured response."""
        status_code = get_status_for_exception(exc)

        logger.warning(
            "Auth error on %s %s: %s (code=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
        )

        extra = {}
        if isinstance(exc, IncorrectOtpError):
            extra["remaining_attempts"] = exc.remaining_attempts

        return _create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
            **extra,
        )

    @app.exception_handler(SecurityError)
    async def security_exception_handler(
        request: Request,
        exc: SecurityError,
    ) -> JSONResponse:
        """Handle key and ciphertext failures without leaking details."""
        logger.error(
            "Security error on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="An internal error occurred",
            code=ErrorCode.INTERNAL_ERROR.value,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unhandled exceptions with consistent error format."""
        logger.exception(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="An internal error occurred",
            code=ErrorCode.INTERNAL_ERROR.value,
        )
