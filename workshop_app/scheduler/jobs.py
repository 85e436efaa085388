# workshop_app/scheduler/jobs.py
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workshop_app.config import settings
from workshop_app.services.email_service import EmailService
from workshop_app.services.reminder_service import ReminderService, TickSummary
from workshop_app.utils.dates import now_utc

logger = logging.getLogger(__name__)

JOB_ID = "workshop_reminders"


class ReminderScheduler:
    """
    Fixed-interval reminder loop.

    Owns its APScheduler instance; ``start``/``stop`` are the only lifecycle
    entry points. Every run, scheduled or manual, goes through one lock, so two
    passes over the ledger never execute at the same time.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        email: Optional[EmailService] = None,
        interval_minutes: Optional[int] = None,
        timezone: Optional[str] = None,
        run_on_start: bool = True,
    ):
        if session_factory is None:
            from workshop_app.db import SessionLocal
            session_factory = SessionLocal
        self._session_factory = session_factory
        self._email = email or EmailService()
        self._interval = interval_minutes or settings.REMINDER_INTERVAL_MINUTES
        self._tz = timezone or settings.SCHEDULER_TZ
        self._run_on_start = run_on_start

        self._scheduler: Optional[AsyncIOScheduler] = None
        self._lock = asyncio.Lock()
        self.last_summary: Optional[TickSummary] = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        """Register the interval job. Must be called with a running event loop."""
        if self._scheduler is not None:
            logger.info("reminder scheduler already running, skipping start")
            return

        # next_run_time=None would add the job paused, so only pass it when set
        extra = {"next_run_time": now_utc()} if self._run_on_start else {}

        scheduler = AsyncIOScheduler(timezone=self._tz)
        scheduler.add_job(
            self._tick_job,
            trigger="interval",
            minutes=self._interval,
            id=JOB_ID,
            replace_existing=True,
            coalesce=True,            # missed ticks collapse into one
            max_instances=1,          # an overdue tick is skipped, never run in parallel
            misfire_grace_time=60,
            **extra,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("reminder scheduler started, every %s min", self._interval)

    async def stop(self) -> None:
        """Stop future ticks; an in-flight run is allowed to finish first."""
        if self._scheduler is None:
            return
        scheduler, self._scheduler = self._scheduler, None
        scheduler.pause()
        # shutdown() cancels running coroutine jobs, so wait for the lock first
        async with self._lock:
            scheduler.shutdown(wait=False)
        logger.info("reminder scheduler stopped")

    async def run_now(self, now: Optional[datetime] = None) -> TickSummary:
        """One dispatch pass; queues behind any pass already running."""
        async with self._lock:
            async with self._session_factory() as session:
                svc = ReminderService(session, self._email)
                summary = await svc.run_once(now or now_utc())
        self.last_summary = summary
        return summary

    async def _tick_job(self) -> None:
        try:
            await self.run_now()
        except Exception:
            # the loop must keep ticking
            logger.exception("reminder tick crashed")
