"""
Global error handling middleware.
"""
import logging
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable

from app.domain.exceptions import PlantTrackerError


logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    The single place where domain errors are logged and turned into
    `{message, error}` JSON responses.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        """
        Process the request and handle any exceptions.

        Args:
            request: The incoming request
            call_next: The next middleware or route handler

        Returns:
            Response object
        """
        try:
            response = await call_next(request)
            return response

        except PlantTrackerError as e:
            log = logger.warning if e.status_code < 500 else logger.error
            log(
                f"{type(e).__name__}: {e.message} ({e.error})",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": e.status_code,
                }
            )
            return JSONResponse(
                status_code=e.status_code,
                content={
                    "message": e.message,
                    "error": e.error,
                }
            )

        except ValueError as e:
            # Log validation errors
            logger.warning(
                f"Validation error: {str(e)}",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                }
            )
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={
                    "message": "Invalid request",
                    "error": str(e),
                }
            )

        except Exception as e:
            # Log unexpected errors
            logger.exception(
                f"Unhandled exception: {str(e)}",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                }
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "message": "Internal server error",
                    "error": "An unexpected error occurred",
                }
            )


def _summarize_validation_errors(errors) -> str:
    parts = []
    for error in errors:
        # Drop the leading 'body' / 'query' / 'path' segment
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Render request validation failures in the `{message, error}` shape.

    Absent fields report "Missing required fields"; anything else that fails
    to parse reports "Invalid request". Both are 400.
    """
    errors = exc.errors()
    missing = any(error.get("type") == "missing" for error in errors)
    summary = _summarize_validation_errors(errors)
    logger.warning(
        f"Request validation failed: {summary}",
        extra={
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": "Missing required fields" if missing else "Invalid request",
            "error": summary,
        }
    )
