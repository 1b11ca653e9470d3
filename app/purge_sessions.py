"""
CLI entrypoint for the expired-session purge. Run from cron, e.g.:

  python -m app.purge_sessions

Or hourly: 0 * * * * cd /path/to/panel && .venv/bin/python -m app.purge_sessions
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.session_purge import run_session_purge
from app.services.sessions import SessionRegistry

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete sessions whose expires_at has passed."""
    try:
        deleted = run_session_purge(SessionRegistry(SessionLocal), settings)
        logger.info("Session purge completed: sessions_deleted=%s", deleted)
        return 0
    except Exception as e:
        logger.exception("Session purge failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
