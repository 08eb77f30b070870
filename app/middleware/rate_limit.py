"""Apply a RateLimiter to every request under a path prefix."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.errors import error_response
from app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS_MESSAGE = "Too many requests. Please try again later."


def client_id_for(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Count requests under path_prefix per client address.

    When several of these are stacked, the outermost one runs first and its
    X-RateLimit-* headers are the ones the client sees.
    """

    def __init__(self, app: ASGIApp, limiter: RateLimiter, path_prefix: str) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix.rstrip("/")

    def applies_to(self, path: str) -> bool:
        return path == self.path_prefix or path.startswith(self.path_prefix + "/")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.applies_to(request.url.path):
            return await call_next(request)

        client_id = client_id_for(request)
        decision = self.limiter.hit(client_id)
        if not decision.allowed:
            logger.info(
                "Rate limit exceeded",
                extra={
                    "client": client_id,
                    "path_prefix": self.path_prefix,
                    "retry_after": decision.retry_after,
                },
            )
            return error_response(
                429,
                TOO_MANY_REQUESTS_MESSAGE,
                headers=decision.headers(),
                retryAfter=decision.retry_after,
            )

        response = await call_next(request)
        response.headers.update(decision.headers())
        return response
