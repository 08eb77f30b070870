"""
FastAPI application factory. No business logic; only wiring and middleware.

Run with: uvicorn app.main:create_app --factory
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import router as api_router
from app.core.clock import Clock, utc_now
from app.core.config import Settings, get_settings
from app.core.context import AppContext
from app.core.errors import register_exception_handlers
from app.core.logging_config import configure_logging
from app.middleware.origin import OriginValidationMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_logging import RequestLoggingMiddleware
from app.middleware.sanitize import SanitizeInputMiddleware
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.services.token_sweep import run_periodic_sweep

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    ctx: AppContext = app.state.context
    sweeper: asyncio.Task | None = None
    if ctx.settings.TOKEN_SWEEP_ENABLED:
        sweeper = asyncio.create_task(
            run_periodic_sweep(ctx, ctx.settings.TOKEN_SWEEP_INTERVAL_SEC)
        )
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        ctx.close()
        logger.info("Application shut down")


def create_app(settings: Settings | None = None, clock: Clock = utc_now) -> FastAPI:
    """Build the context (storage, then limiters) and the app with its middleware chain."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    ctx = AppContext.create(settings, clock=clock)

    app = FastAPI(
        title="Parish Portal API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.context = ctx
    register_exception_handlers(app)

    prefix = settings.API_PREFIX
    # add_middleware wraps: the last one added runs first. Request order is
    # logger -> security headers -> origin -> sanitizer -> auth limiter -> api limiter -> CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else settings.origin_allow_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RateLimitMiddleware, limiter=ctx.api_limiter, path_prefix=prefix)
    app.add_middleware(RateLimitMiddleware, limiter=ctx.auth_limiter, path_prefix=f"{prefix}/auth")
    app.add_middleware(SanitizeInputMiddleware)
    app.add_middleware(
        OriginValidationMiddleware,
        allowed_origins=settings.origin_allow_list,
        exempt_paths=(f"{prefix}/ping", f"{prefix}/health"),
        enabled=settings.APP_ENV != "dev",
    )
    app.add_middleware(
        SecurityHeadersMiddleware,
        content_security_policy=settings.CONTENT_SECURITY_POLICY,
    )
    app.add_middleware(
        RequestLoggingMiddleware,
        content_security_policy=settings.CONTENT_SECURITY_POLICY,
    )

    app.include_router(api_router, prefix=prefix)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Parish Portal API"}

    return app
