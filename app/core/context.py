"""Process-wide application context: storage, rate limiters and clock."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.clock import Clock, utc_now
from app.core.config import Settings
from app.core.database import build_engine, build_session_factory, init_db
from app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """
    Everything the middleware chain and the routes share for the life of the process.

    Build it with ``AppContext.create`` (storage first, then the limiters) and
    release it with ``close``.
    """

    settings: Settings
    engine: Engine
    session_factory: sessionmaker[Session]
    auth_limiter: RateLimiter
    api_limiter: RateLimiter
    clock: Clock = field(default=utc_now)

    @classmethod
    def create(cls, settings: Settings, clock: Clock = utc_now) -> "AppContext":
        engine = build_engine(settings)
        if settings.DB_AUTO_CREATE:
            init_db(engine)
        session_factory = build_session_factory(engine)
        auth_limiter = RateLimiter(
            settings.AUTH_RATE_LIMIT_WINDOW_SEC, settings.AUTH_RATE_LIMIT_MAX, clock
        )
        api_limiter = RateLimiter(
            settings.API_RATE_LIMIT_WINDOW_SEC, settings.API_RATE_LIMIT_MAX, clock
        )
        logger.info(
            "Application context ready",
            extra={"app_env": settings.APP_ENV, "db_dialect": engine.dialect.name},
        )
        return cls(
            settings=settings,
            engine=engine,
            session_factory=session_factory,
            auth_limiter=auth_limiter,
            api_limiter=api_limiter,
            clock=clock,
        )

    def now(self) -> datetime:
        return self.clock()

    def close(self) -> None:
        self.engine.dispose()


def get_context(request: Request) -> AppContext:
    """Dependency: the AppContext attached to the running application."""
    return request.app.state.context
