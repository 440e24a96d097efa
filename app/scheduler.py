"""
APScheduler setup - runs the daily price check inside the API process.
"""

import logging
import os
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.jobstores.memory import MemoryJobStore

from app.database import SessionLocal
from app.services.amadeus_client import AmadeusPricingClient
from app.services.notification import get_global_notifier
from app.services.price_check import PriceCheckService, PriceCheckSummary
from app.config import get_settings

logger = logging.getLogger(__name__)

scheduler: Optional[AsyncIOScheduler] = None

settings = get_settings()


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the global scheduler instance."""
    global scheduler
    if scheduler is None:
        tz = os.environ.get('TZ', 'UTC')
        logger.info(f"Scheduler using timezone: {tz}")

        scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            timezone=tz
        )

        _setup_scheduled_jobs()

    return scheduler


def _setup_scheduled_jobs():
    # max_instances=1: overlapping runs would price the same flights twice
    scheduler.add_job(
        check_all_prices,
        trigger=CronTrigger(hour=settings.price_check_hour, minute=settings.price_check_minute),
        id='daily_price_check',
        name='Daily Price Check',
        replace_existing=True,
        max_instances=1,
    )

    logger.info(
        f"Scheduled jobs configured: daily price check at "
        f"{settings.price_check_hour:02d}:{settings.price_check_minute:02d}"
    )


async def check_all_prices() -> Optional[PriceCheckSummary]:
    """
    Scheduled job: run one price check over all tracked flights.

    A failed run is logged and pushed as a system alert; the scheduler keeps
    running.
    """
    logger.info("Starting scheduled price check")

    db = SessionLocal()
    notifier = get_global_notifier()

    try:
        service = PriceCheckService(
            db,
            AmadeusPricingClient.from_settings(settings),
            notifier=notifier,
        )
        summary = await service.run()
        logger.info(
            f"✅ Scheduled price check done: {summary.updated}/{summary.checked} updated, "
            f"{summary.notifications} notifications"
        )
        return summary

    except Exception as e:
        logger.exception(f"❌ Scheduled price check failed: {e}")
        await notifier.send_system_alert(
            title="Price Check Failed",
            message=f"The scheduled price check did not complete.\nReason: {e}",
            priority="high",
            alert_type="error",
        )
        return None

    finally:
        db.close()


def start_scheduler():
    """Start the scheduler (call this from FastAPI startup)."""
    scheduler_instance = get_scheduler()
    if not scheduler_instance.running:
        scheduler_instance.start()
        logger.info("Scheduler started")


def stop_scheduler():
    """Stop the scheduler (call this from FastAPI shutdown)."""
    global scheduler
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


def get_scheduler_status() -> dict:
    """Next run times for the status endpoint."""
    if scheduler is None or not scheduler.running:
        return {"running": False, "jobs": []}

    return {
        "running": True,
        "jobs": [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in scheduler.get_jobs()
        ],
    }
