# workshop_app/web/routes.py
from __future__ import annotations

import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_app.config import settings
from workshop_app.db import get_session
from workshop_app.scheduler.jobs import ReminderScheduler
from workshop_app.services.email_service import EmailService
from workshop_app.services.reminder_service import ReminderService, WorkshopNotFound

router = APIRouter()


class TestEmailIn(BaseModel):
    email: str


def require_admin(x_admin_key: Optional[str] = Header(default=None)) -> None:
    # no key configured: local/dev mode
    if not settings.ADMIN_API_KEY:
        return
    if not x_admin_key or not secrets.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
        raise HTTPException(status_code=401, detail="invalid admin key")


def get_reminder_scheduler(request: Request) -> ReminderScheduler:
    return request.app.state.reminders


def get_email_service() -> EmailService:
    return EmailService()


admin = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@router.get("/health")
async def health(request: Request):
    reminders: Optional[ReminderScheduler] = getattr(request.app.state, "reminders", None)
    return {
        "status": "ok",
        "scheduler_running": bool(reminders and reminders.is_running),
    }


@admin.post("/reminders/run")
async def run_reminders(reminders: ReminderScheduler = Depends(get_reminder_scheduler)):
    """Check reminders now; waits for a scheduled pass that is already running."""
    summary = await reminders.run_now()
    return {"ok": True, "summary": summary.as_dict()}


@admin.post("/workshops/{workshop_id}/send-reminder")
async def send_reminder(
    workshop_id: str,
    session: AsyncSession = Depends(get_session),
    email: EmailService = Depends(get_email_service),
):
    svc = ReminderService(session, email)
    try:
        sent = await svc.broadcast(workshop_id)
    except WorkshopNotFound:
        raise HTTPException(status_code=404, detail="Workshop not found")
    return {"message": f"Reminders sent to {sent} students", "sent_count": sent}


@admin.post("/settings/test-email")
async def test_email(body: TestEmailIn, email: EmailService = Depends(get_email_service)):
    ok = await email.send_test_email(body.email)
    if not ok:
        raise HTTPException(status_code=502, detail="Failed to send test email")
    return {"message": f"Test email sent to {body.email}"}


router.include_router(admin)
