"""APScheduler integration for the current-timer polling job."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

log = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


def start_scheduler():
    """Start the APScheduler; must be called from within the running event loop."""
    if not scheduler.running:
        scheduler.start()
        log.info("APScheduler started successfully")


def shutdown_scheduler():
    """Shutdown the APScheduler without waiting for in-flight polls."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        log.info("APScheduler shut down successfully")
