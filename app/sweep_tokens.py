"""
CLI entrypoint for a one-off expired-token sweep. The API also sweeps on a
timer (TOKEN_SWEEP_INTERVAL_SEC); use this from cron when that is disabled:

  python -m app.sweep_tokens
"""

import logging
import sys

from app.core.clock import utc_now
from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory
from app.core.logging_config import configure_logging
from app.services.token_sweep import purge_expired_tokens

logger = logging.getLogger(__name__)


def main() -> int:
    """Delete every session token whose expiry has passed."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    engine = build_engine(settings)
    db = build_session_factory(engine)()
    try:
        tokens_deleted = purge_expired_tokens(db, utc_now())
        logger.info("Token sweep completed: tokens_deleted=%s", tokens_deleted)
        return 0
    except Exception as e:
        logger.exception("Token sweep failed: %s", e)
        return 1
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
