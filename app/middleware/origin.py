"""Coarse CSRF guard: state-changing requests must come from an allowed origin."""

import logging
from collections.abc import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.errors import error_response

logger = logging.getLogger(__name__)

INVALID_ORIGIN_MESSAGE = "Invalid request origin"


def is_allowed_origin(origin: str | None, referer: str | None, allowed: Iterable[str]) -> bool:
    """True when Origin or Referer starts with one of the allowed origins."""
    allowed = [a for a in allowed if a]
    for value in (origin, referer):
        if value and any(value.startswith(a) for a in allowed):
            return True
    return False


class OriginValidationMiddleware(BaseHTTPMiddleware):
    """
    Reject non-GET requests whose Origin/Referer is not allow-listed.

    Not applied in dev, to GET requests, or to the health check paths.
    """

    def __init__(
        self,
        app: ASGIApp,
        allowed_origins: list[str],
        exempt_paths: Iterable[str] = (),
        enabled: bool = True,
    ) -> None:
        super().__init__(app)
        self.allowed_origins = list(allowed_origins)
        self.exempt_paths = tuple(exempt_paths)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if (
            not self.enabled
            or request.method == "GET"
            or request.url.path.startswith(self.exempt_paths)
        ):
            return await call_next(request)

        origin = request.headers.get("origin")
        referer = request.headers.get("referer")
        if not is_allowed_origin(origin, referer, self.allowed_origins):
            logger.info(
                "Rejected request origin",
                extra={"path": request.url.path, "origin": origin, "referer": referer},
            )
            return error_response(403, INVALID_ORIGIN_MESSAGE)
        return await call_next(request)
