"""Global exception handlers and middleware."""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from geodrop.utils.exceptions import GeoDropException
from geodrop.utils.logger import get_logger

logger = get_logger(__name__)


def create_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Dict[str, Any],
) -> JSONResponse:
    """
    Create JSON error response.

    Args:
        status_code: HTTP status code.
        error_code: Error code identifier.
        message: Error message.
        details: Additional error details.

    Returns:
        JSON response.
    """
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "code": error_code,
            "details": jsonable_encoder(details),
        },
    )


async def geodrop_exception_handler(request: Request, exc: GeoDropException) -> JSONResponse:
    """Convert domain exceptions into the error envelope."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"GeoDrop exception: {exc.error_code} - {exc.message}",
        extra={"extra_data": {"error_code": exc.error_code, "path": request.url.path}},
    )
    return create_error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are reported like any other validation failure."""
    errors = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        errors.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return create_error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        error_code="VALIDATION_ERROR",
        message="Invalid request",
        details={"errors": errors},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GeoDropException, geodrop_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last-resort handler that turns unexpected exceptions into a 500 envelope."""

    async def dispatch(self, request: Request, call_next: Any) -> JSONResponse:
        """
        Handle exceptions and return proper JSON responses.

        Args:
            request: HTTP request.
            call_next: Next middleware/route handler.

        Returns:
            JSON response with error details.
        """
        # Let OPTIONS (CORS preflight) requests pass through untouched
        if request.method == "OPTIONS":
            return await call_next(request)

        try:
            return await call_next(request)
        except GeoDropException as e:
            return await geodrop_exception_handler(request, e)
        except Exception as e:
            logger.error(
                f"Unhandled exception: {str(e)}",
                extra={"extra_data": {"exception_type": type(e).__name__}},
                exc_info=True,
            )
            return create_error_response(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_code="INTERNAL_SERVER_ERROR",
                message="An unexpected error occurred",
                details={"error": str(e)} if logger.isEnabledFor(logging.DEBUG) else {},
            )
