"""
app/core/errors.py

Purpose: HTTP rendering of errors

- Store errors keep their own status code and error code
- Driver errors that escaped the store become 503 (connection) or 500
- Framework errors (404/405, request validation) use the same envelope
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pymongo.errors import ConnectionFailure, PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import UserStoreError
from app.core.logging import get_logger
from app.schemas.response import ErrorResponse

logger = get_logger(__name__)


def error_response(status_code: int, error: str, code: str, details: Optional[Any] = None) -> JSONResponse:
    body = ErrorResponse(error=error, code=code, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _public_message(exc: Exception) -> str:
    # Internal messages are not exposed in production
    if settings.is_production:
        return "An internal error occurred. Please try again later."
    return str(exc)


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """
    @app.exception_handler(UserStoreError)
    async def user_store_exception_handler(request: Request, exc: UserStoreError):
        if exc.status_code >= 500:
            logger.error(
                f"{request.method} {request.url.path} failed: {exc.message}",
                extra={"error": exc.code}
            )
        return error_response(exc.status_code, exc.message, exc.code, exc.details)

    @app.exception_handler(PyMongoError)
    async def database_exception_handler(request: Request, exc: PyMongoError):
        logger.error(
            f"{request.method} {request.url.path} database error: {exc}",
            extra={"error": type(exc).__name__},
            exc_info=True
        )
        if isinstance(exc, ConnectionFailure):
            return error_response(503, _public_message(exc), "DB_UNAVAILABLE")
        return error_response(500, _public_message(exc), "DB_ERROR")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(422, "Input validation failed", "VALIDATION_ERROR", exc.errors())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else "unknown"
            },
            exc_info=True
        )
        return error_response(500, _public_message(exc), "INTERNAL_ERROR")
