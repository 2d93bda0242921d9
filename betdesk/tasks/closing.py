import logging

from betdesk.core.errors import BetdeskError
from betdesk.db.session import AsyncSessionLocal
from betdesk.services import lifecycle_service

logger = logging.getLogger(__name__)


async def close_due_games_once(session_factory=AsyncSessionLocal) -> list[int]:
    """
    Close every open game whose close_at has passed.

    Candidates are read in one session; each close runs in its own transaction
    so one failing game does not hold the others open.
    """
    async with session_factory() as session:
        ids = await lifecycle_service.due_for_close(session)

    closed = []
    for gid in ids:
        try:
            async with session_factory() as s:
                async with s.begin():
                    await lifecycle_service.close_game(s, gid)
            closed.append(gid)
        except BetdeskError as e:
            # closed manually between the scan and the lock
            logger.info("skip auto-close game=%s: %s", gid, e.detail)
    if closed:
        logger.info("auto-closed games %s", closed)
    return closed


async def close_due_games_job():
    try:
        await close_due_games_once()
    except Exception as e:
        logger.exception("close_due_games_job failed: %s", e)
