# workshop_app/main.py
from __future__ import annotations

import asyncio
import logging
import os
import signal

from workshop_app.config import settings
from workshop_app.core.logging import setup_logging
from workshop_app.db import engine, init_db
from workshop_app.scheduler.jobs import ReminderScheduler

# ---- logging first ----
setup_logging()
logger = logging.getLogger("workshop_app.main")


async def main() -> None:
    logger.info(
        "boot: starting reminder worker LOG_LEVEL=%s interval=%smin tz=%s",
        settings.log_level,
        settings.REMINDER_INTERVAL_MINUTES,
        settings.SCHEDULER_TZ,
    )

    # migrations in prod; create_all only when explicitly enabled
    if os.getenv("INIT_DB_ON_START", "0") == "1":
        await init_db()
        logger.info("DB init done (create_all enabled by ENV)")
    else:
        logger.info("DB init skipped (use alembic upgrade head)")

    reminders = ReminderScheduler()
    reminders.start()

    # graceful shutdown on signals
    stop_evt = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _stop(*_: object) -> None:
        stop_evt.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _stop)
        except NotImplementedError:
            pass

    await stop_evt.wait()
    logger.info("shutdown requested")

    # lets an in-flight tick finish
    await reminders.stop()

    try:
        await engine.dispose()
    except Exception:
        logger.exception("engine dispose failed")


if __name__ == "__main__":
    asyncio.run(main())
