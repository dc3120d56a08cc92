"""
CLI entrypoint for expired session cleanup. Run from cron, e.g.:

  python -m corpgate.cleanup

Or hourly: 0 * * * * cd /path/to/corpgate && .venv/bin/python -m corpgate.cleanup
"""

import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from corpgate.core.config import get_settings
from corpgate.core.database import SessionLocal
from corpgate.services.auth import cleanup_expired_sessions

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete sessions whose refresh token has expired."""
    settings = get_settings()
    if not settings.SESSION_CLEANUP_ENABLED:
        logger.info("Session cleanup is disabled (SESSION_CLEANUP_ENABLED=false); skipping.")
        return 0
    db = SessionLocal()
    try:
        deleted = cleanup_expired_sessions(db)
        logger.info("Session cleanup completed: sessions_deleted=%s", deleted)
        return 0
    except SQLAlchemyError as e:
        logger.exception("Session cleanup failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
