"""Session purge: delete session rows whose expiry has passed."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from app.services.sessions import SessionRegistry

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_session_purge(registry: SessionRegistry, settings: "Settings") -> int:
    """
    Delete expired sessions. Refresh already rejects and removes them lazily;
    this keeps rows for devices that never come back from accumulating.

    Returns the number of sessions deleted. Idempotent: safe to run repeatedly.
    """
    if not settings.SESSION_PURGE_ENABLED:
        logger.info("Session purge is disabled (SESSION_PURGE_ENABLED=false); skipping.")
        return 0
    return registry.purge_expired(datetime.now(timezone.utc))
