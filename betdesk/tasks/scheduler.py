import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from betdesk.core.config import settings
from betdesk.tasks.closing import close_due_games_job

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")


def start_scheduler():
    if not settings.SCHEDULER_ENABLED:
        logger.warning("scheduler disabled")
        return
    if scheduler.running:
        return
    scheduler.add_job(
        close_due_games_job,
        "interval",
        seconds=settings.CLOSE_POLL_SECONDS,
        id="close_due_games",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.start()


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
