"""
Error responses and exception handlers.

Every failure leaves the API as ``{"success": false, "message": ...}`` with a fixed
status code:

- 400 missing or malformed input
- 401 missing, invalid or expired token; bad credentials
- 403 insufficient role or rejected request origin
- 404 unknown resource
- 409 duplicate email or username
- 429 rate limit exceeded (``Retry-After`` set)
- 500 storage or unexpected failure (details only in the server log)
"""

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"
INVALID_BODY_MESSAGE = "Invalid request body"


def error_response(
    status_code: int,
    message: str,
    headers: Mapping[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    """Build the JSON error body shared by handlers and middleware."""
    content: dict[str, Any] = {"success": False, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=dict(headers or {}))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "errors": len(exc.errors())},
    )
    return error_response(400, INVALID_BODY_MESSAGE)


async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(
        "Storage error while handling request",
        extra={"method": request.method, "path": request.url.path},
    )
    return error_response(500, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that render every error with the shared body shape."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, storage_exception_handler)
