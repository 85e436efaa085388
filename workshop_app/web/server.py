# workshop_app/web/server.py
from __future__ import annotations

import logging
import platform

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
import uvicorn

from workshop_app.config import settings
from workshop_app.core.logging import setup_logging
from workshop_app.scheduler.jobs import ReminderScheduler
from workshop_app.web.errors import unhandled_exception_handler, validation_exception_handler
from workshop_app.web.middleware_logging import LoggingMiddleware
from workshop_app.web.routes import router as api_router

log = logging.getLogger("startup")

app = FastAPI(title="Workshop Reminders Admin")

app.add_middleware(LoggingMiddleware)
app.include_router(api_router)

app.add_exception_handler(Exception, unhandled_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


@app.on_event("startup")
async def on_startup():
    setup_logging()

    reminders = ReminderScheduler()
    app.state.reminders = reminders
    # the web process owns the loop, so manual runs share its lock
    if settings.ENABLE_SCHEDULER:
        reminders.start()
    else:
        log.info("reminder scheduler disabled via settings (ENABLE_SCHEDULER=False)")

    log.info(
        "app_startup | platform=%s python=%s scheduler=%s interval=%smin brevo=%s",
        platform.platform(),
        platform.python_version(),
        settings.ENABLE_SCHEDULER,
        settings.REMINDER_INTERVAL_MINUTES,
        bool(settings.BREVO_API_KEY),
    )


@app.on_event("shutdown")
async def on_shutdown():
    reminders: ReminderScheduler | None = getattr(app.state, "reminders", None)
    if reminders is not None:
        await reminders.stop()


if __name__ == "__main__":
    uvicorn.run(
        "workshop_app.web.server:app",
        host=settings.WEBAPP_HOST,
        port=settings.WEBAPP_PORT,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
