from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_app.config import settings as app_settings
from workshop_app.repositories.registration_repo import RegistrationRepo
from workshop_app.repositories.reminder_repo import SentReminderRepo, legacy_reminder_key, reminder_key
from workshop_app.repositories.setting_repo import SettingRepo
from workshop_app.repositories.user_repo import UserRepo
from workshop_app.repositories.workshop_repo import WorkshopRepo
from workshop_app.schemas import GlobalReminderSettings, WorkshopView
from workshop_app.services.email_service import EmailService
from workshop_app.services.reminder_policy import LEGACY_DEFAULT_IDENTITY, ReminderRule, is_due, resolve_rules
from workshop_app.utils.dates import as_utc, now_utc

logger = logging.getLogger(__name__)

SENT = "sent"
FAILED = "failed"
SKIPPED = "skipped"


class WorkshopNotFound(Exception):
    def __init__(self, workshop_id: str):
        super().__init__(f"workshop {workshop_id} not found")
        self.workshop_id = workshop_id


@dataclass
class TickSummary:
    workshops: int = 0
    checked: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    disabled: bool = False

    def as_dict(self) -> dict:
        return asdict(self)


class ReminderService:
    """
    One pass over upcoming workshops: send every due reminder that the ledger
    has not seen yet, record it after a successful send.
    """

    def __init__(self, session: AsyncSession, email: EmailService, send_timeout: Optional[float] = None):
        self.s = session
        self.email = email
        self.send_timeout = app_settings.EMAIL_SEND_TIMEOUT_SECONDS if send_timeout is None else send_timeout

        self.workshops = WorkshopRepo(session)
        self.registrations = RegistrationRepo(session)
        self.users = UserRepo(session)
        self.settings = SettingRepo(session)
        self.ledger = SentReminderRepo(session)

    async def run_once(self, now: Optional[datetime] = None) -> TickSummary:
        """Never raises: failures are logged and counted in the summary."""
        now = as_utc(now) if now else now_utc()
        summary = TickSummary()

        try:
            global_settings = await self.settings.get_default()
        except SQLAlchemyError:
            logger.exception("could not load reminder settings, using defaults")
            await self._rollback()
            global_settings = GlobalReminderSettings.defaults()

        if not global_settings.send_reminders:
            logger.info("reminders disabled in settings, tick skipped")
            summary.disabled = True
            return summary

        try:
            workshops = await self._load_upcoming(now)
        except SQLAlchemyError:
            logger.exception("could not load upcoming workshops")
            await self._rollback()
            return summary

        for workshop in workshops:
            summary.workshops += 1
            try:
                await self._process_workshop(workshop, global_settings, now, summary)
            except Exception:
                logger.exception("reminder processing failed", extra={"workshop_id": workshop.id})
                await self._rollback()

        logger.info(
            "reminder tick done: workshops=%s checked=%s sent=%s failed=%s skipped=%s",
            summary.workshops, summary.checked, summary.sent, summary.failed, summary.skipped,
        )
        return summary

    # ---------- internals ----------

    async def _load_upcoming(self, now: datetime) -> List[WorkshopView]:
        # snapshot rows up front: a rollback later in the tick expires ORM instances
        views: List[WorkshopView] = []
        for row in await self.workshops.list_upcoming(now):
            try:
                views.append(WorkshopView.model_validate(row))
            except ValidationError as e:
                logger.warning("skipping malformed workshop row: %s", e, extra={"workshop_id": row.id})
        return views

    async def _completed_user_ids(self, workshop_id: str) -> List[str]:
        regs = await self.registrations.list_completed_by_workshop(workshop_id)
        return [r.user_id for r in regs]

    async def _process_workshop(
        self,
        workshop: WorkshopView,
        global_settings: GlobalReminderSettings,
        now: datetime,
        summary: TickSummary,
    ) -> None:
        user_ids: Optional[List[str]] = None

        for rule in resolve_rules(workshop, global_settings):
            if not is_due(now, workshop.start_at, rule):
                continue

            if user_ids is None:
                user_ids = await self._completed_user_ids(workshop.id)

            for user_id in user_ids:
                summary.checked += 1
                try:
                    outcome = await self._process_recipient(workshop, rule, user_id, global_settings, now)
                except Exception:
                    logger.exception(
                        "reminder failed",
                        extra={"workshop_id": workshop.id, "user_id": user_id, "rule": rule.identity},
                    )
                    await self._rollback()
                    outcome = FAILED

                if outcome == SENT:
                    summary.sent += 1
                elif outcome == FAILED:
                    summary.failed += 1
                else:
                    summary.skipped += 1

    async def _already_sent(self, workshop_id: str, user_id: str, rule: ReminderRule) -> bool:
        if await self.ledger.has_sent(reminder_key(workshop_id, user_id, rule.identity)):
            return True
        # pre-multi-offset markers exist only for the single default reminder
        if rule.identity == LEGACY_DEFAULT_IDENTITY:
            return await self.ledger.has_sent(legacy_reminder_key(workshop_id, user_id))
        return False

    async def _process_recipient(
        self,
        workshop: WorkshopView,
        rule: ReminderRule,
        user_id: str,
        global_settings: GlobalReminderSettings,
        now: datetime,
    ) -> str:
        ctx = {"workshop_id": workshop.id, "user_id": user_id, "rule": rule.identity}

        if await self._already_sent(workshop.id, user_id, rule):
            return SKIPPED

        recipient = await self._recipient(user_id)
        if recipient is None:
            logger.warning("registration points to a missing user or empty email, skipped", extra=ctx)
            return SKIPPED
        email, name = recipient

        if not await self._send(email, name, workshop, global_settings, rule.subject):
            logger.warning("reminder not delivered, will retry next tick", extra=ctx)
            return FAILED

        try:
            created = await self.ledger.mark_sent(reminder_key(workshop.id, user_id, rule.identity), now)
        except SQLAlchemyError:
            # email is out; without the marker the next tick sends it again
            logger.exception("reminder sent but marker not recorded", extra=ctx)
            await self._rollback()
            return SENT

        if not created:
            logger.warning("reminder marker already existed", extra=ctx)
        logger.info("reminder sent to %s for %r", email, workshop.title, extra=ctx)
        return SENT

    async def _recipient(self, user_id: str) -> Optional[Tuple[str, str]]:
        user = await self.users.get_by_id(user_id)
        if user is None or not user.email:
            return None
        return user.email, user.name

    async def _send(
        self,
        email: str,
        name: str,
        workshop: WorkshopView,
        global_settings: GlobalReminderSettings,
        subject: Optional[str] = None,
    ) -> bool:
        try:
            return await asyncio.wait_for(
                self.email.send_reminder_email(email, name, workshop, global_settings, subject),
                timeout=self.send_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("email send exceeded %ss to=%s", self.send_timeout, email)
            return False

    async def _rollback(self) -> None:
        try:
            await self.s.rollback()
        except SQLAlchemyError:
            logger.exception("session rollback failed")

    # ---------- manual broadcast ----------

    async def broadcast(self, workshop_id: str) -> int:
        """
        Admin "send reminder now": every completed registrant, unconditionally.
        Does not read or write the ledger, scheduled reminders are unaffected.
        """
        row = await self.workshops.get_by_id(workshop_id)
        if row is None:
            raise WorkshopNotFound(workshop_id)
        workshop = WorkshopView.model_validate(row)
        global_settings = await self.settings.get_default()

        sent = 0
        for user_id in await self._completed_user_ids(workshop.id):
            recipient = await self._recipient(user_id)
            if recipient is None:
                continue
            email, name = recipient
            try:
                ok = await self._send(email, name, workshop, global_settings)
            except Exception:
                logger.exception("manual reminder failed", extra={"workshop_id": workshop.id, "user_id": user_id})
                continue
            if ok:
                sent += 1

        logger.info("manual reminder sent to %s students", sent, extra={"workshop_id": workshop.id})
        return sent
