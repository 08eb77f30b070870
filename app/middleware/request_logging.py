"""
Request logging middleware.

- Tags each request with a request id (also returned as X-Request-ID).
- Logs request start and end with status and latency. Server errors and
  security rejections (401, 403, 429) are logged at ERROR; other client
  errors are expected behaviour and stay at INFO.
- Last line of defence: an exception escaping the app is logged with its
  traceback and answered with a generic 500 that still carries the
  security headers.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.errors import INTERNAL_ERROR_MESSAGE, error_response
from app.middleware.security_headers import security_headers

logger = logging.getLogger(__name__)

SECURITY_REJECTION_STATUSES = frozenset({401, 403, 429})


def level_for_status(status_code: int) -> int:
    if status_code >= 500 or status_code in SECURITY_REJECTION_STATUSES:
        return logging.ERROR
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, content_security_policy: str) -> None:
        super().__init__(app)
        # The fallback 500 is built outside SecurityHeadersMiddleware.
        self.fallback_headers = security_headers(content_security_policy)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = str(uuid.uuid4())
        start = time.perf_counter()
        client = request.client.host if request.client else "unknown"
        logger.info(
            "%s %s - %s",
            request.method,
            request.url.path,
            client,
            extra={"event": "request_start", "request_id": rid},
        )
        try:
            response = await call_next(request)
        except Exception:
            dur_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.exception(
                "%s %s - unhandled error (%sms)",
                request.method,
                request.url.path,
                dur_ms,
                extra={"event": "request_error", "request_id": rid},
            )
            response = error_response(500, INTERNAL_ERROR_MESSAGE, headers=self.fallback_headers)
            response.headers["X-Request-ID"] = rid
            return response

        dur_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.log(
            level_for_status(response.status_code),
            "%s %s - %s (%sms)",
            request.method,
            request.url.path,
            response.status_code,
            dur_ms,
            extra={
                "event": "request_end",
                "request_id": rid,
                "status_code": response.status_code,
                "duration_ms": dur_ms,
            },
        )
        response.headers["X-Request-ID"] = rid
        return response
