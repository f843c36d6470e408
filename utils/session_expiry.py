# utils/session_expiry.py

"""
Background task that periodically deletes expired login sessions.

Runs as an asyncio task inside the FastAPI lifespan. Expired sessions are
already ignored when resolved; this only keeps the table from growing.
"""

import asyncio
import logging

from services.session_store import SessionStore

logger = logging.getLogger(__name__)


async def purge_expired_sessions_loop(sessions: SessionStore, interval_seconds: int) -> None:
    """
    Called via: asyncio.create_task(purge_expired_sessions_loop(...))
    Cancelled when the lifespan exits.
    """
    logger.info("Session expiry task started (interval=%ds)", interval_seconds)
    while True:
        try:
            purged = await sessions.purge_expired()
            if purged:
                logger.info("Purged %d expired session(s)", purged)
        except asyncio.CancelledError:
            logger.info("Session expiry task cancelled, shutting down")
            raise
        except Exception:
            # Retried next cycle.
            logger.exception("Error in session expiry task")

        await asyncio.sleep(interval_seconds)
