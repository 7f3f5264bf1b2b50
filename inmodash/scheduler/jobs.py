"""
Obligation Scheduler

Background jobs that keep obligations current without operator action:
- Monthly generation (rent from contracts + recurring templates): day 1
- Overdue marking of unpaid obligations past their due date: daily

Uses APScheduler for job scheduling.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select

from inmodash.config import settings
from inmodash.database import async_session_maker
from inmodash.data.models import User
from inmodash.services.obligations import ObligationService
from inmodash.services.recurring import generate_pending

logger = logging.getLogger(__name__)


class ObligationScheduler:
    """
    Manages scheduled obligation runs.

    The methods can be called by APScheduler or any other job runner; each
    one opens its own session and returns a summary dict.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or async_session_maker
        self._last_generation_run: Optional[datetime] = None
        self._last_overdue_run: Optional[datetime] = None

    async def run_monthly_generation(self, today: Optional[date] = None) -> dict:
        """
        Generate the current month's obligations for every account.

        Should be scheduled on the first day of each month. Safe to re-run:
        already generated periods are skipped.
        """
        logger.info("Starting monthly obligation generation")
        self._last_generation_run = datetime.utcnow()

        async with self._session_factory() as db:
            try:
                summary = await generate_pending(db, today)
            except Exception as e:
                logger.error(f"Monthly obligation generation failed: {e}")
                await db.rollback()
                return {
                    "run_type": "monthly_generation",
                    "started_at": self._last_generation_run.isoformat(),
                    "errors": [str(e)],
                }

        summary["run_type"] = "monthly_generation"
        summary["started_at"] = self._last_generation_run.isoformat()
        return summary

    async def run_overdue_check(self, today: Optional[date] = None) -> dict:
        """
        Flag pending/partial obligations past their due date for every account.

        Should be scheduled daily.
        """
        logger.info("Starting overdue obligation check")
        self._last_overdue_run = datetime.utcnow()

        summary = {
            "run_type": "overdue_check",
            "started_at": self._last_overdue_run.isoformat(),
            "users_processed": 0,
            "obligations_marked": 0,
            "errors": [],
        }

        async with self._session_factory() as db:
            result = await db.execute(select(User.id))
            user_ids = [row[0] for row in result.fetchall()]

            for user_id in user_ids:
                try:
                    marked = await ObligationService(db, user_id).mark_overdue(today)
                    summary["obligations_marked"] += marked
                    summary["users_processed"] += 1
                except Exception as e:
                    await db.rollback()
                    logger.error(f"Overdue check failed for user {user_id}: {e}")
                    summary["errors"].append({"user_id": user_id, "error": str(e)})

        logger.info(
            f"Overdue check complete: {summary['obligations_marked']} obligations marked "
            f"across {summary['users_processed']} users"
        )
        return summary

    def get_status(self) -> dict:
        return {
            "last_generation_run": self._last_generation_run.isoformat() if self._last_generation_run else None,
            "last_overdue_run": self._last_overdue_run.isoformat() if self._last_overdue_run else None,
        }


# Global scheduler instance
obligation_scheduler = ObligationScheduler()


def setup_apscheduler(scheduler):
    """
    Configure APScheduler with obligation jobs.

    Usage:
        from apscheduler.schedulers.asyncio import AsyncIOScheduler
        scheduler = AsyncIOScheduler()
        setup_apscheduler(scheduler)
        scheduler.start()

    Args:
        scheduler: APScheduler instance (AsyncIOScheduler)
    """
    # Monthly generation on the configured day, just after midnight
    scheduler.add_job(
        obligation_scheduler.run_monthly_generation,
        'cron',
        day=settings.GENERATION_DAY_OF_MONTH,
        hour=0,
        minute=5,
        id='monthly_obligation_generation',
        name='Monthly Obligation Generation',
        replace_existing=True,
    )

    # Daily overdue marking
    scheduler.add_job(
        obligation_scheduler.run_overdue_check,
        'cron',
        hour=settings.OVERDUE_CHECK_HOUR,
        minute=0,
        id='daily_overdue_check',
        name='Daily Overdue Check',
        replace_existing=True,
    )

    logger.info("APScheduler configured with obligation jobs")
