"""Expired session token cleanup, run periodically or from the CLI."""

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.models import AuthToken

if TYPE_CHECKING:
    from app.core.context import AppContext

logger = logging.getLogger(__name__)


def purge_expired_tokens(session: Session, now: datetime) -> int:
    """
    Delete tokens whose expiry is at or before now. Returns the number deleted.

    Idempotent: safe to run repeatedly. Authentication already rejects expired
    tokens, so this only bounds table growth.
    """
    deleted_count = (
        session.query(AuthToken)
        .filter(AuthToken.expires_at <= now)
        .delete(synchronize_session=False)
    )
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Token sweep: cutoff=%s, tokens_deleted=%s",
            now.isoformat(),
            deleted_count,
        )
    return deleted_count


def sweep_once(ctx: "AppContext") -> int:
    session = ctx.session_factory()
    try:
        return purge_expired_tokens(session, ctx.clock())
    finally:
        session.close()


async def run_periodic_sweep(ctx: "AppContext", interval_sec: float) -> None:
    """Sweep every interval_sec until cancelled. Failures are logged and retried next tick."""
    logger.info("Token sweeper started (interval=%ss)", interval_sec)
    while True:
        await asyncio.sleep(interval_sec)
        try:
            await run_in_threadpool(sweep_once, ctx)
        except Exception:
            logger.exception("Token sweep failed")
